import logging

import onnxruntime as ort

from animegan_pipeline.errors import ProviderUnavailableError, UnknownProviderError

logger = logging.getLogger(__name__)

CPU_PROVIDER = "CPUExecutionProvider"

PROVIDER_MODES = ("auto", "cuda", "dml", "rocm", "tensorrt", "coreml", "openvino", "cpu")

# Order in which "auto" probes accelerators.
ACCELERATOR_PRIORITY = (
    "tensorrt",
    "cuda",
    "rocm",
    "dml",
    "coreml",
    "openvino",
)

_MODE_TO_EP = {
    "dml": "DmlExecutionProvider",
    "cuda": "CUDAExecutionProvider",
    "rocm": "ROCMExecutionProvider",
    "tensorrt": "TensorrtExecutionProvider",
    "coreml": "CoreMLExecutionProvider",
    "openvino": "OpenVINOExecutionProvider",
}


def available_providers():
    """
    Capability query: execution providers compiled into this onnxruntime build.
    """
    providers = list(ort.get_available_providers())
    for name in providers:
        logger.debug("Available execution provider: %s", name)
    return providers


def _provider_entry(mode, device_id):
    ep_name = _MODE_TO_EP[mode]
    if mode in ("cuda", "dml", "rocm", "tensorrt"):
        return (ep_name, {"device_id": device_id})
    return ep_name


def build_providers(provider="auto", device_id=0, available=None):
    """
    Resolve a provider mode into the list passed to InferenceSession.

    "auto" takes the first available accelerator, "cpu" forces the CPU
    backend, any other mode requires that accelerator to be present.
    CPUExecutionProvider is appended as the fallback in every mode.
    """
    if available is None:
        available = available_providers()
    available = set(available)

    mode = str(provider).lower()
    if mode not in PROVIDER_MODES:
        raise UnknownProviderError(f"provider must be one of: {sorted(PROVIDER_MODES)}")

    resolved = []
    if mode == "auto":
        for candidate in ACCELERATOR_PRIORITY:
            if _MODE_TO_EP[candidate] in available:
                resolved.append(_provider_entry(candidate, device_id))
                break
    elif mode != "cpu":
        ep_name = _MODE_TO_EP[mode]
        if ep_name not in available:
            raise ProviderUnavailableError(
                f"{ep_name} is not available in this environment. "
                f"Available providers: {sorted(available)}"
            )
        resolved.append(_provider_entry(mode, device_id))

    if CPU_PROVIDER in available:
        resolved.append(CPU_PROVIDER)
    elif mode == "cpu":
        raise ProviderUnavailableError(
            f"{CPU_PROVIDER} is not available. Available providers: {sorted(available)}"
        )

    if not resolved:
        raise ProviderUnavailableError(
            "No compatible execution provider found. "
            f"Available providers: {sorted(available)}"
        )

    logger.info("ONNX providers: %s", resolved)
    return resolved

import time


class BaseProcessor:
    """
    Abstract processor interface.
    Style-transfer backends (ONNX session, in-memory doubles) implement this.
    """

    def preprocess(self, image):
        """
        Convert RGB uint8 image into model-ready tensor.
        """
        raise NotImplementedError

    def infer(self, tensor):
        """
        Run model inference.
        """
        raise NotImplementedError

    def postprocess(self, output):
        """
        Convert model output back to displayable RGBA image.
        """
        raise NotImplementedError

    def process(self, image):
        """
        Full pipeline: image → tensor → inference → image
        """
        tensor = self.preprocess(image)
        output = self.infer(tensor)
        return self.postprocess(output)

    def process_timed(self, image):
        t0 = time.perf_counter()
        tensor = self.preprocess(image)
        t1 = time.perf_counter()
        output = self.infer(tensor)
        t2 = time.perf_counter()
        result = self.postprocess(output)
        t3 = time.perf_counter()

        return result, (t1 - t0) * 1000.0, (t2 - t1) * 1000.0, (t3 - t2) * 1000.0

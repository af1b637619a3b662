import argparse
import csv
import re
import subprocess
import sys
from datetime import datetime


TIMING_RE = re.compile(r"^\[timing\]\s+(.*)$")
KV_RE = re.compile(r"([a-zA-Z0-9_]+)=([^\s]+)")

FIELDS = ["case", "status", "runs", "pre", "run", "post", "total", "timing_line", "stderr"]


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Benchmark matrix runner for the AnimeGAN ONNX pipeline")
    parser.add_argument("--image", default="input.jpg")
    parser.add_argument("--model", default="models/AnimeGANv3_Hayao_36.onnx")
    parser.add_argument(
        "--providers",
        default="auto,cpu",
        help="Comma-separated providers: auto,cuda,dml,rocm,tensorrt,coreml,openvino,cpu"
    )
    parser.add_argument("--repeat-values", default="1,10")
    parser.add_argument("--warmup", type=int, default=2)
    parser.add_argument("--input-name", default="AnimeGANv3_input:0")
    parser.add_argument("--output-csv", default="")
    return parser.parse_args(argv)


def parse_list(values):
    return [x.strip() for x in values.split(",") if x.strip()]


def parse_ints(values):
    return [int(x) for x in parse_list(values)]


def parse_timing_line(line):
    match = TIMING_RE.match(line)
    if not match:
        return None
    return {key: val for key, val in KV_RE.findall(match.group(1))}


def run_case(cmd):
    proc = subprocess.run(cmd, capture_output=True, text=True)
    lines = (proc.stdout or "").splitlines()
    timing_lines = [ln for ln in lines if TIMING_RE.match(ln)]
    if proc.returncode != 0:
        return {"status": "error", "returncode": proc.returncode, "stderr": (proc.stderr or "").strip()}
    if not timing_lines:
        return {"status": "error", "returncode": 0, "stderr": "No [timing] output found"}

    last = timing_lines[-1]
    values = parse_timing_line(last)
    values["status"] = "ok"
    values["timing_line"] = last
    return values


def build_cases(args):
    cases = []
    for provider in parse_list(args.providers):
        for repeat in parse_ints(args.repeat_values):
            cases.append({
                "case": f"onnx:{provider}:repeat={repeat}",
                "provider": provider,
                "repeat": repeat,
            })
    return cases


def build_command(args, case):
    return [
        sys.executable,
        "-m", "animegan_pipeline.main",
        "--image", args.image,
        "--model", args.model,
        "--provider", case["provider"],
        "--input-name", args.input_name,
        "--repeat", str(case["repeat"]),
        "--warmup", str(args.warmup),
        "--model-stage-timing",
        "--no-save",
        "--log-level", "WARNING",
    ]


def print_table(rows):
    headers = FIELDS[:7]
    print(" | ".join(headers))
    print(" | ".join(["---"] * len(headers)))
    for row in rows:
        print(" | ".join(str(row.get(h, "")) for h in headers))


def main(argv=None):
    args = parse_args(argv)

    rows = []
    for case in build_cases(args):
        print(f"Running: {case['case']}")
        result = run_case(build_command(args, case))
        row = {"case": case["case"]}
        for field in FIELDS[1:]:
            row[field] = result.get(field, "")
        row["status"] = result.get("status", "error")
        rows.append(row)

    print()
    print_table(rows)

    output_csv = args.output_csv
    if not output_csv:
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        output_csv = f"benchmark_results_{stamp}.csv"
    with open(output_csv, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=FIELDS)
        writer.writeheader()
        writer.writerows(rows)
    print(f"\nSaved: {output_csv}")
    return rows


if __name__ == "__main__":
    main()

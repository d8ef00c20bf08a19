import os
import logging
import argparse
from pathlib import Path
from typing import List, Optional
from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

import numpy as np
from tqdm import tqdm

from models.compression_result import format_bytes
from models.errors import CompressionError
from pipeline.vector_quantizer import compress_file
from services.image_service import ImageService

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = int(os.getenv("MAX_UPLOAD_SIZE_MB", "10")) * 1024 * 1024


def collect_inputs(inputs: List[str], image_service: ImageService) -> List[Path]:
    """Expand directories (non-recursive) and keep supported image files."""
    paths = []
    for raw in inputs:
        p = Path(raw)
        candidates = sorted(p.iterdir()) if p.is_dir() else [p]
        for c in candidates:
            if not image_service.is_supported_file(c):
                logger.info(f"Skipping due to extension: {c}")
                continue
            paths.append(c)
    return paths


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )

    parser = argparse.ArgumentParser(description="Compress PNG/JPEG images with 64-color vector quantization.")
    parser.add_argument("inputs", nargs="+", help="Image files or directories")
    parser.add_argument("-o", "--output-dir", default=os.getenv("VQ_OUTPUT_DIR", "data/vq_output"))
    parser.add_argument("--seed", type=int, default=os.getenv("VQ_RANDOM_SEED") or None,
                        help="Seed for reproducible subsampling and re-seeding")
    args = parser.parse_args(argv)

    image_service = ImageService()
    out_dir = Path(args.output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    rng = np.random.default_rng(None if args.seed is None else int(args.seed))

    failures = 0
    for path in tqdm(collect_inputs(args.inputs, image_service), desc="vq", ncols=70):
        if path.stat().st_size > MAX_FILE_SIZE:
            print(f"❌ {path.name}: larger than {format_bytes(MAX_FILE_SIZE)}")
            failures += 1
            continue
        try:
            source, result = compress_file(path, rng=rng, image_service=image_service)
        except CompressionError as err:
            print(f"❌ {path.name}: {err}")
            failures += 1
            continue

        target = out_dir / result.download_name(source.name)
        image_service.save(result.data, target)

        stats = result.stats
        status = f"-{stats.reduction_percentage:.1f}%" if result.compression_applied else "kept original"
        print(f"✅ {path.name}: {format_bytes(stats.original_size)} → "
              f"{format_bytes(stats.compressed_size)} ({status}) → {target}")

    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())

#!/usr/bin/env python3
"""CLI script to run one geocoder export."""
import argparse
import sys
from pathlib import Path

from geoexport.core.blob_store import LocalDiskBlobStore
from geoexport.core.config import BLOB_STORE_DIR, INPUT_BUCKET, LOG_LEVEL, OUTPUT_BUCKET
from geoexport.core.exceptions import ExportError
from geoexport.core.pipeline import ExportPipeline
from geoexport.utils.error_tracking import setup_error_tracking
from geoexport.utils.logging import setup_logging


def main():
    parser = argparse.ArgumentParser(description="Export stop places to geocoder CSV")
    parser.add_argument("--blob-dir", type=Path, default=BLOB_STORE_DIR,
                        help="Base folder of the local blob store")
    parser.add_argument("--input-bucket", default=INPUT_BUCKET, help="Bucket holding the input archive")
    parser.add_argument("--output-bucket", default=OUTPUT_BUCKET, help="Bucket receiving the export")
    parser.add_argument("--log-level", default=LOG_LEVEL, help="Log level (default: INFO)")

    args = parser.parse_args()

    setup_logging(args.log_level)
    setup_error_tracking()

    pipeline = ExportPipeline(
        LocalDiskBlobStore(args.blob_dir, args.input_bucket),
        LocalDiskBlobStore(args.blob_dir, args.output_bucket),
    )

    print("Running export...")
    try:
        blob_name = pipeline.run()
    except (ExportError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"✅ Export written to {args.output_bucket}/{blob_name}")


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Merge OpenAPI documents into a single document

Usage: merge_openapi.py <output> <input1>[=namespace] [input2[=namespace] ...]

Inputs are merged in the order given; on a true conflict the later one
wins. Namespaces are all-or-nothing across inputs. The output is YAML for
.yaml/.yml files and JSON otherwise.
"""
import sys

from py_oas_merge import MergeError, merge_files
from py_oas_merge.config import get_settings
from py_oas_merge.logging import configure_logging, log_error


def parse_input(arg):
    """Split ``path=namespace`` into its parts"""
    path, sep, namespace = arg.partition("=")
    return path, (namespace if sep else None)


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) < 2:
        print("Usage: merge_openapi.py <output> <input1>[=namespace] [input2[=namespace] ...]",
              file=sys.stderr)
        return 2

    settings = get_settings()
    configure_logging(
        service_name=settings.service_name,
        log_level=settings.log_level,
        json_logs=settings.json_logs,
    )

    output = argv[0]
    paths, namespaces = zip(*(parse_input(arg) for arg in argv[1:]))

    try:
        result = merge_files(list(paths), output, namespaces=list(namespaces))
    except MergeError as e:
        log_error(e, {"output": output})
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Wrote {output} from {len(paths)} inputs ({len(result.warnings)} warnings)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

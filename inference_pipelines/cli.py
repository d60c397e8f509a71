"""
Command-line interface for inference pipelines.

Builds one pipeline through the factory, runs it once and prints the result:

    python -m inference_pipelines sentiment-analysis "I love this!"
    python -m inference_pipelines question-answering "Who?" --option context="Ann wrote it."
"""

import sys
import argparse
import asyncio
import json
from enum import Enum
from typing import Any, Dict, List, Optional

import numpy as np
from PIL import Image

from .config import setup_logging
from .errors import PipelineError
from .factory import pipeline
from .registry import SUPPORTED_TASKS, TASK_ALIASES


class ExitCode(int, Enum):
    """CLI exit codes"""
    SUCCESS = 0
    ERROR = 1
    INVALID_ARGS = 2


class OutputFormat(str, Enum):
    """Output format options"""
    TEXT = "text"
    JSON = "json"


def parse_options(pairs: Optional[List[str]]) -> Dict[str, Any]:
    """
    Parse repeated KEY=VALUE arguments.

    Values are read as JSON when they parse (numbers, booleans, lists),
    otherwise kept as plain strings.
    """
    options: Dict[str, Any] = {}
    for pair in pairs or []:
        key, sep, raw = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Invalid option '{pair}', expected KEY=VALUE")
        try:
            options[key] = json.loads(raw)
        except json.JSONDecodeError:
            options[key] = raw
    return options


def to_jsonable(value: Any) -> Any:
    """json.dumps default hook for arrays and mask images"""
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, Image.Image):
        return {"mode": value.mode, "width": value.width, "height": value.height}
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def print_result(result: Any, output_format: str) -> None:
    if output_format == OutputFormat.JSON.value:
        print(json.dumps(result, indent=2, default=to_jsonable))
        return

    items = result if isinstance(result, list) else [result]
    for item in items:
        print(json.dumps(item, default=to_jsonable))


async def run(args: argparse.Namespace) -> Any:
    """Create the pipeline, invoke it once, release the model."""
    options = parse_options(args.option)
    inputs = args.inputs[0] if len(args.inputs) == 1 else list(args.inputs)

    pretrained: Dict[str, Any] = {"revision": args.revision, "local_files_only": args.local_files_only}
    if args.cache_dir:
        pretrained["cache_dir"] = args.cache_dir

    pipe = await pipeline(args.task, args.model, **pretrained)
    try:
        return await pipe(inputs, **options)
    finally:
        await pipe.dispose()


def build_parser() -> argparse.ArgumentParser:
    tasks = sorted(list(SUPPORTED_TASKS) + list(TASK_ALIASES))
    parser = argparse.ArgumentParser(
        prog="inference_pipelines",
        description="Run one inference pipeline task",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Tasks:
  {', '.join(tasks)}

Examples:
  %(prog)s sentiment-analysis "I love this!"
  %(prog)s fill-mask "Paris is the [MASK] of France." --option topk=3
  %(prog)s zero-shot-classification "I lost my keys" --option 'candidate_labels=["travel", "home"]'
  %(prog)s object-detection cats.jpg --format json
        """
    )

    # Global options
    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Increase verbosity (can be repeated: -v, -vv)'
    )
    parser.add_argument(
        '--format',
        choices=[f.value for f in OutputFormat],
        default=OutputFormat.TEXT.value,
        help='Output format'
    )

    # Task
    parser.add_argument('task', help='Task name or alias')
    parser.add_argument('inputs', nargs='+', help='Input text(s) or image path(s)')
    parser.add_argument('--model', help='Model id (default: the task default)')
    parser.add_argument(
        '--option',
        action='append',
        metavar='KEY=VALUE',
        help='Pipeline call option (can be repeated)'
    )

    # Loading
    parser.add_argument('--revision', default='main', help='Model revision')
    parser.add_argument('--cache-dir', help='Download cache directory')
    parser.add_argument('--local-files-only', action='store_true', help='Never download')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    # Setup logging
    setup_logging(args.verbose)

    try:
        result = asyncio.run(run(args))
    except (PipelineError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return ExitCode.INVALID_ARGS.value
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return ExitCode.ERROR.value

    print_result(result, args.format)
    return ExitCode.SUCCESS.value

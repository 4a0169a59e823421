"""
命令行入口 - geotext-extract
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .core import get_config_loader, load_config_file, setup_logging
from .core.exceptions import ConfigException, ConfigNotFoundException, DocumentException, ValidationException
from .experiment import ResultExporter
from .extraction import ExtractionPipeline

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_INPUT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='geotext-extract',
        description='Extract and geocode locations from text'
    )
    parser.add_argument('text', nargs='?', help='text to analyze (reads stdin when omitted and no --file)')
    parser.add_argument('--file', help='read text from a .txt, .md or .docx file')
    parser.add_argument('--config', help='path to config.yaml')
    parser.add_argument('--format', dest='formats', nargs='+', choices=['csv', 'excel', 'json'],
                        help='also export the result in these formats')
    parser.add_argument('--output-dir', help='directory for exported files (default: output.output_dir)')
    parser.add_argument('--log-level', help='logging level (default: logging.level)')
    parser.add_argument('--info', action='store_true', help='print service information and exit')
    return parser


async def _run(pipeline: ExtractionPipeline, args: argparse.Namespace, text: Optional[str]):
    try:
        if args.file:
            return await pipeline.process_document(args.file)
        return await pipeline.process_text(text)
    finally:
        await pipeline.close()


def main(argv: Optional[List[str]] = None) -> int:
    """geotext-extract 命令入口"""
    args = build_parser().parse_args(argv)

    try:
        config_loader = load_config_file(args.config) if args.config else get_config_loader()
    except ConfigNotFoundException as e:
        print(json.dumps({'success': False, 'error': e.message}, ensure_ascii=False), file=sys.stderr)
        return EXIT_CONFIG_ERROR
    setup_logging(config_loader, args.log_level)

    try:
        pipeline = ExtractionPipeline.from_config(config_loader)
    except ConfigException as e:
        logger.error(f"配置错误: {e}")
        return EXIT_CONFIG_ERROR

    if args.info:
        print(json.dumps(pipeline.service_info(), ensure_ascii=False, indent=2))
        return EXIT_OK

    text = args.text
    if text is None and not args.file and not sys.stdin.isatty():
        text = sys.stdin.read()

    try:
        result = asyncio.run(_run(pipeline, args, text))
    except (ValidationException, DocumentException) as e:
        print(json.dumps({'success': False, 'error': e.message}, ensure_ascii=False), file=sys.stderr)
        return EXIT_INPUT_ERROR

    output_config = config_loader.get_output_config()
    response = result.to_response(bool(output_config.get('null_unresolved_coordinates', False)))
    print(json.dumps(response, ensure_ascii=False, indent=2))

    if args.formats:
        output_dir = Path(args.output_dir or output_config.get('output_dir') or './output')
        exported = ResultExporter(config_loader).export_results([result], output_dir, args.formats)
        for format_type, path in exported.items():
            logger.info(f"已导出 {format_type}: {path}")

    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())

"""
Command-line interface for page image translation
"""
import argparse
import asyncio
import logging
import os
import sys

# Reduce verbosity of httpx (one line per model call otherwise)
logging.getLogger('httpx').setLevel(logging.WARNING)

from src.config import ADAPTERS, DEFAULT_ADAPTER, DEFAULT_TARGET_LANGUAGE, RENDER_ENDPOINT, TranslationConfig
from src.api.handlers import perform_document_translation
from src.core.rendering import HttpPageRenderer
from src.persistence import SqliteProcessRepository
from src.services import ListenerRegistry, ProcessService


def _unique_output_path(path):
    base, ext = os.path.splitext(path)
    candidate, counter = path, 1
    while os.path.exists(candidate):
        candidate = f"{base} ({counter}){ext}"
        counter += 1
    return candidate


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Translate the page images of a scanned legal document into HTML.")
    parser.add_argument("-i", "--input", required=True, help="Directory holding the page images (page-1.png, page-2.png, ...).")
    parser.add_argument("-o", "--output", default=None, help="Output HTML file. If not specified, uses the directory name with the target language.")
    parser.add_argument("-tl", "--target_lang", default=DEFAULT_TARGET_LANGUAGE, help=f"Target language (default: {DEFAULT_TARGET_LANGUAGE}).")
    parser.add_argument("-a", "--adapter", default=DEFAULT_ADAPTER, choices=sorted(ADAPTERS), help=f"Model adapter (default: {DEFAULT_ADAPTER}).")
    parser.add_argument("-c", "--cycles", type=int, default=None, help="Self-correction cycles per page (default: the adapter's default, capped at its maximum).")
    parser.add_argument("-p", "--prompt", default="", help="Additional instructions for the translator.")
    parser.add_argument("--render_endpoint", default=RENDER_ENDPOINT, help=f"HTML rendering service used by the review step (default: {RENDER_ENDPOINT}).")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logger = logging.getLogger('translate')

    if not os.path.isdir(args.input):
        parser.error(f"--input must be a directory: {args.input}")

    adapter = ADAPTERS[args.adapter]
    if not adapter.api_key:
        parser.error(f"No API key configured for adapter '{args.adapter}' (see .env)")

    cycles = args.cycles if args.cycles is not None else adapter.default_cycles
    config = TranslationConfig.from_request({
        'adapter': args.adapter,
        'language': args.target_lang,
        'cycles': cycles,
        'prompt': args.prompt,
    })

    if args.output is None:
        args.output = f"{os.path.normpath(args.input)} ({args.target_lang}).html"
    args.output = _unique_output_path(args.output)

    # Same state machine as the server, kept in memory; progress goes to the log
    service = ProcessService(SqliteProcessRepository(":memory:"), ListenerRegistry())
    process = service.create({'translation': config.to_dict(), 'pagesDir': args.input})
    service.listeners.register(process.id, lambda payload: logger.info(
        f"[{payload['status']}] {payload['message']}"))

    logger.info(f"Translating {args.input} -> {args.output} "
                f"({config.adapter}, {config.language}, {config.cycles} cycle(s))")

    try:
        asyncio.run(perform_document_translation(
            process.id, config, args.input, service, renderer=HttpPageRenderer(args.render_endpoint)))
    except Exception as e:
        logger.error(f"Translation failed: {e}", exc_info=args.verbose)
        sys.exit(1)

    with open(args.output, 'w', encoding='utf-8') as f:
        f.write(service.get(process.id).html)
    logger.info(f"Translated document written to {args.output}")

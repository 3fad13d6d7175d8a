"""Command-line interface for Locale Translator."""

from __future__ import annotations

import asyncio
import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

from tqdm import tqdm

from .config import (
    TranslatorConfig,
    SUPPORTED_LANGUAGES,
    DEFAULT_PACING_DELAY,
    DEFAULT_MAX_RETRIES,
)
from .document import validate_document_file
from .exceptions import DocumentError
from .models import ProviderKind
from .orchestrator import CancellationToken, TranslationOrchestrator
from .providers import create_provider
from .settings import AppSettings, load_settings, save_settings


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S"
    )
    # httpx logs every request at INFO
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)


def parse_arguments(argv: Optional[list] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Translate JSON localization files through public translation APIs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s localization.json -t ru                  # LibreTranslate, English -> Russian
  %(prog)s localization.json out.json -t uk         # Specify output
  %(prog)s localization.json -p mymemory -t pl      # Use MyMemory
  %(prog)s localization.json -p google --api-key KEY
  %(prog)s                                          # Reuse last files and settings
        """
    )

    # Positional arguments
    parser.add_argument("input_path", nargs='?', default=None, help="Source localization JSON")
    parser.add_argument("output_path", nargs='?', default=None, help="Translated JSON path")

    # Translation options
    parser.add_argument(
        "-t", "--target", dest="target_language", default=None,
        help=f"Target language ({', '.join(SUPPORTED_LANGUAGES)})"
    )
    parser.add_argument("--source-lang", dest="source_language", default="en")
    parser.add_argument(
        "-p", "--provider", default=None,
        choices=[k.value for k in ProviderKind],
        help="Translation provider"
    )

    # API options
    parser.add_argument("--api-key", help="API key (or set GOOGLE_TRANSLATE_API_KEY)")
    parser.add_argument("--api-url", help="LibreTranslate instance URL (or set LIBRETRANSLATE_URL)")

    # Performance
    parser.add_argument(
        "--delay", dest="pacing_delay", type=float, default=DEFAULT_PACING_DELAY,
        help="Pause between entries in seconds"
    )
    parser.add_argument("--retries", dest="max_retries", type=int, default=DEFAULT_MAX_RETRIES)
    parser.add_argument("--skip-check", action="store_true", help="Skip the connection test")

    # Misc
    parser.add_argument("--no-settings", action="store_true", help="Do not read or write saved settings")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")

    return parser.parse_args(argv)


def install_cancel_handler(token: CancellationToken) -> bool:
    """Route Ctrl+C to cooperative cancellation. Returns False if unsupported."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, token.cancel)
    except (NotImplementedError, RuntimeError):
        return False
    return True


def remove_cancel_handler() -> None:
    """Restore default Ctrl+C handling once the run is over."""
    loop = asyncio.get_running_loop()
    try:
        loop.remove_signal_handler(signal.SIGINT)
    except (NotImplementedError, RuntimeError):
        pass


async def main_async(args: argparse.Namespace) -> int:
    """Main async workflow."""
    logger = logging.getLogger(__name__)

    settings = AppSettings() if args.no_settings else load_settings()
    config = TranslatorConfig.from_args(args, settings)

    # 验证配置
    error = config.validate()
    if error:
        logger.error(error)
        return 1

    # 验证输入文件
    input_path = args.input_path or settings.source_file
    if not input_path:
        logger.error("No input file given")
        return 1
    in_path = Path(input_path).expanduser().resolve()
    error = validate_document_file(in_path)
    if error:
        logger.error(error)
        return 1

    # A remembered target only belongs to the remembered source
    output_path = args.output_path
    if not output_path and args.input_path is None:
        output_path = settings.target_file
    if output_path:
        out_path = Path(output_path).expanduser()
    else:
        out_path = in_path.with_name(f"{config.output_prefix}{in_path.name}")

    provider = create_provider(config.to_selection(), max_retries=config.max_retries)

    async with provider:
        if not args.skip_check:
            logger.info(f"Testing {provider.name} connection...")
            if not await provider.test_connection():
                logger.error(f"{provider.name} connection failed. Check your network, URL or API key.")
                return 1

        token = CancellationToken()
        if install_cancel_handler(token):
            logger.info("Press Ctrl+C to stop; finished entries will be saved")

        orchestrator = TranslationOrchestrator(
            source_language=config.source_language,
            pacing_delay=config.pacing_delay,
        )

        with tqdm(desc="Translating", unit="key") as bar:
            def on_progress(done: int, total: int) -> None:
                bar.total = total
                bar.n = done
                bar.refresh()

            try:
                _, summary = await orchestrator.run_file(
                    in_path,
                    out_path,
                    provider,
                    config.target_language,
                    cancel_token=token,
                    on_progress=on_progress,
                )
            except DocumentError as e:
                logger.error(f"Translation aborted: {e}")
                return 1
            finally:
                remove_cancel_handler()

    # 保存设置
    if not args.no_settings:
        save_settings(AppSettings(
            source_file=str(in_path),
            target_file=str(out_path),
            target_language=config.target_language,
            provider=config.provider,
        ))

    if summary.failed_keys:
        logger.warning(f"{summary.failed_count} entries kept their original text: {', '.join(summary.failed_keys)}")

    if summary.cancelled:
        logger.info(
            f"Cancelled at {summary.translated_count}/{summary.total_entries}. "
            f"Partial translation saved to {out_path}"
        )
        return 130

    logger.info(f"Done! {summary.translated_count}/{summary.total_entries} keys processed. Saved to {out_path}")
    return 0


def main() -> None:
    """CLI entry point."""
    args = parse_arguments()
    setup_logging(args.verbose)

    try:
        exit_code = asyncio.run(main_async(args))
        sys.exit(exit_code)
    except KeyboardInterrupt:
        print("\nInterrupted by user.")
        sys.exit(130)
    except Exception as e:
        logging.error(f"Fatal error: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()

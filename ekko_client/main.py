"""Main application entry point for ekko-client."""

import sys
import asyncio
import argparse
import functools
import logging
from concurrent.futures import Future
from pathlib import Path
from typing import Callable, Optional

from rich.console import Console

from . import __version__
from .config import EkkoConfig
from .models.session import SessionState
from .services.session_controller import SessionController
from .ui.console_view import ConsoleView
from .ui.keyboard_input import create_input_handler
from .ui.publisher import ViewPublisher

logger = logging.getLogger(__name__)


def file_writer(path: str) -> Callable[[str], None]:
    """Export sink that writes the transcript to ``path``."""
    def write(text: str) -> None:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text + "\n" if text else "", encoding="utf-8")
        logger.info(f"Transcript written to {target}")
    return write


class Client:

    def __init__(self, config_path: Optional[str], log_level: Optional[str] = None):
        # Load configuration
        self.config = EkkoConfig(config_path)
        # Command line level wins over config
        setup_logging(self.config, log_level or self.config.get('logging.level', 'INFO'))
        self.console = Console()
        self.should_exit = False

    def init(self, base_url: Optional[str] = None, source: Optional[str] = None,
             duration: Optional[int] = None) -> None:
        if base_url:
            self.config.set('server.base_url', base_url)
        if source:
            self.config.set('session.source', source)
        if duration is not None:
            self.config.set('session.duration', duration)

        logger.info("Initializing client...")
        logger.info(f"Server: {self.config.get('server.base_url')}")
        self.publisher = ViewPublisher()
        self.view = ConsoleView(self.publisher, self.console)
        self.controller = SessionController(self.config, publisher=self.publisher)

    def export_writer(self, export_path: Optional[str]) -> Callable[[str], None]:
        if export_path:
            return file_writer(export_path)
        return self.view.show_export

    async def list_sources(self) -> int:
        sources = await self.controller.refresh_sources()
        return 0 if sources else 1

    async def run_auto(self, record_seconds: float, export_path: Optional[str]) -> int:
        """Record for ``record_seconds`` (or until the server ends the session), then export."""
        await self.controller.refresh_sources()
        if not await self.controller.start():
            return 1

        loop = asyncio.get_running_loop()
        deadline = loop.time() + record_seconds
        while loop.time() < deadline and self.controller.state is SessionState.RECORDING:
            await asyncio.sleep(min(0.5, max(0.0, deadline - loop.time())))

        await self.controller.stop()
        self.controller.export(self.export_writer(export_path))
        return 0

    async def run_interactive(self, export_path: Optional[str]) -> int:
        loop = asyncio.get_running_loop()
        quit_event = asyncio.Event()

        self.view.show_header()
        await self.controller.refresh_sources()
        self.view.show_help()

        def on_key(key: str) -> bool:
            # Runs on the input thread
            self.submit_key(key, quit_event, export_path, loop)
            return key != "q"

        handler = create_input_handler(on_key)
        handler.start()
        try:
            await quit_event.wait()
        finally:
            handler.stop()
        return 0

    def submit_key(self, key: str, quit_event: asyncio.Event, export_path: Optional[str],
                   loop: asyncio.AbstractEventLoop) -> Future:
        """Hand a key command to the event loop from any thread."""
        future = asyncio.run_coroutine_threadsafe(self.handle_key(key, quit_event, export_path), loop)
        future.add_done_callback(functools.partial(log_command_failure, key))
        return future

    async def handle_key(self, key: str, quit_event: asyncio.Event, export_path: Optional[str]) -> None:
        if key == "1":
            await self.controller.start()
        elif key == "2":
            await self.controller.stop()
        elif key == "3":
            self.controller.clear()
        elif key == "4":
            self.controller.export(self.export_writer(export_path))
        elif key == "s":
            await self.controller.refresh_sources()
        elif key == "n":
            self.select_next_source()
        elif key == "q":
            self.should_exit = True
            quit_event.set()
        elif key in ("h", "?"):
            self.view.show_help()

    def select_next_source(self) -> None:
        sources = self.controller.sources
        if not sources:
            return
        current = self.controller.settings.source
        index = sources.index(current) + 1 if current in sources else 0
        self.controller.select_source(sources[index % len(sources)])

    async def cleanup(self) -> None:
        await self.controller.shutdown()
        self.view.detach()


def log_command_failure(key: str, future: Future) -> None:
    if future.cancelled():
        return
    error = future.exception()
    if error is not None:
        logger.error(f"Command '{key}' failed: {error}", exc_info=error)


def setup_logging(config, level: str = "INFO") -> None:

    """Set up logging configuration from YAML config."""
    # Get log file path from config
    log_file_path = config.get('logging.file_path', 'data/logs/ekko-client.log')
    console_output = config.get('logging.console_output', True)
    
    # Create logs directory if it doesn't exist
    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)
    
    # Set up handlers
    handlers = []
    
    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)
    
    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)
    
    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)
    
    # Log startup
    logger = logging.getLogger(__name__)
    logger.info("="*50)
    logger.info("ekko-client starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("="*50)


async def run(client: Client, args: argparse.Namespace) -> int:
    try:
        if args.list_sources:
            return await client.list_sources()
        if args.auto:
            return await client.run_auto(args.record_seconds, args.export)
        return await client.run_interactive(args.export)
    finally:
        await client.cleanup()


def main() -> None:
    """Main entry point for ekko-client."""
    parser = argparse.ArgumentParser(
        description="ekko-client - live transcript of an ekko recording session",
        epilog="Commands: 1=Start, 2=Stop, 3=Clear, 4=Export, s=Sources, n=Next source, q=Quit"
    )
    
    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: built-in settings)"
    )
    
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config, INFO)"
    )
    
    parser.add_argument(
        "--base-url",
        type=str,
        help="ekko server URL (overrides config)"
    )
    
    parser.add_argument(
        "--source",
        type=str,
        help="Audio source to record from (default: first source reported by the server)"
    )
    
    parser.add_argument(
        "--duration",
        type=int,
        help="Chunk duration in seconds, 1-60 (overrides config)"
    )
    
    parser.add_argument(
        "--list-sources",
        action="store_true",
        help="Print the server's audio sources and exit"
    )
    
    parser.add_argument(
        "--auto",
        action="store_true",
        help="Run in automatic mode: start recording, record for --record-seconds, then stop, export and exit"
    )
    
    parser.add_argument(
        "--record-seconds",
        type=float,
        default=30.0,
        help="Recording time for auto mode (default: 30)"
    )
    
    parser.add_argument(
        "--export",
        type=str,
        metavar="PATH",
        help="Write exported transcripts to this file instead of the terminal"
    )
    
    parser.add_argument(
        "--version",
        action="version",
        version=f"ekko-client v{__version__}"
    )
    
    args = parser.parse_args()

    try:
        client = Client(args.config, args.log_level)
        client.init(args.base_url, args.source, args.duration)
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ Configuration error: {e}")
        sys.exit(1)

    try:
        exit_code = asyncio.run(run(client, args))
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
        exit_code = 0
    except Exception as e:
        print(f"❌ Error: {e}")
        logging.error(f"Application error: {e}", exc_info=True)
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()

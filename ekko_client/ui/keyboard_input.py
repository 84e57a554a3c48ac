"""Cross-platform keyboard command input for the terminal client."""

import sys
import threading
import time
from typing import Optional, Callable, Union
import logging

logger = logging.getLogger(__name__)


class KeyboardInputHandler:
    """Read single keypresses on a background thread."""
    
    def __init__(self, callback: Callable[[str], bool]):
        """Initialize keyboard handler.
        
        Args:
            callback: Function that takes a key and returns True to continue, False to quit
        """
        self.callback = callback
        self.running = False
        self.thread: Optional[threading.Thread] = None
    
    def start(self) -> None:
        """Start the keyboard input handler."""
        if self.running:
            return
        
        self.running = True
        self.thread = threading.Thread(target=self._input_loop, name="keyboard_input", daemon=True)
        self.thread.start()
        logger.info("Keyboard input handler started")
    
    def stop(self) -> None:
        """Stop the keyboard input handler."""
        self.running = False
        if self.thread and self.thread is not threading.current_thread():
            self.thread.join(timeout=1.0)
        logger.info("Keyboard input handler stopped")
    
    def _input_loop(self) -> None:
        """Main input handling loop."""
        logger.info("Starting keyboard input loop")
        while self.running:
            try:
                key = self._get_key()
                if key:
                    logger.debug(f"Key detected: '{key}'")
                    if not self.callback(key):
                        logger.info("Callback returned False, breaking input loop")
                        break
                else:
                    time.sleep(0.05)
            except Exception as e:
                logger.error(f"Error in input loop: {e}")
                break
        self.running = False
        logger.info("Keyboard input loop ended")
    
    def _get_key(self) -> Optional[str]:
        """Get a single keypress in a cross-platform way."""
        if sys.platform == "win32":
            return self._get_key_windows()
        return self._get_key_unix()
    
    def _get_key_windows(self) -> Optional[str]:
        """Get key on Windows."""
        import msvcrt
        if msvcrt.kbhit():
            return msvcrt.getch().decode('utf-8', errors='ignore').lower()
        return None
    
    def _get_key_unix(self) -> Optional[str]:
        """Get key on Unix/Linux/macOS."""
        import select
        import tty
        import termios
        
        if select.select([sys.stdin], [], [], 0.1)[0]:
            # Raw mode for a single character, restored right after
            old_settings = termios.tcgetattr(sys.stdin)
            try:
                tty.setraw(sys.stdin.fileno())
                key = sys.stdin.read(1)
            finally:
                termios.tcsetattr(sys.stdin, termios.TCSADRAIN, old_settings)
            # Ctrl-C arrives as a character in raw mode
            if key == "\x03":
                return "q"
            return key.lower()
        return None


class SimpleInputHandler:
    """Line-based input for stdin that is not a terminal (pipes, IDEs)."""
    
    def __init__(self, callback: Callable[[str], bool]):
        self.callback = callback
        self.running = False
        self.thread: Optional[threading.Thread] = None
    
    def start(self) -> None:
        if self.running:
            return
        
        self.running = True
        self.thread = threading.Thread(target=self._input_loop, name="simple_input", daemon=True)
        self.thread.start()
        logger.info("Simple input handler started")
    
    def stop(self) -> None:
        # input() cannot be interrupted; the daemon thread dies with the process
        self.running = False
        logger.info("Simple input handler stopped")
    
    def _input_loop(self) -> None:
        """Simple input loop using input()."""
        while self.running:
            try:
                user_input = input("> ").strip().lower()
            except (EOFError, KeyboardInterrupt):
                user_input = "q"
            
            if not user_input:
                continue
            if not self.callback(user_input[0]):
                break
        self.running = False


def create_input_handler(callback: Callable[[str], bool]) -> Union[KeyboardInputHandler, SimpleInputHandler]:
    """Create the best available input handler for the current stdin.
    
    Args:
        callback: Function that takes a key and returns True to continue, False to quit
        
    Returns:
        An input handler instance
    """
    if sys.stdin is not None and sys.stdin.isatty():
        return KeyboardInputHandler(callback)
    logger.info("stdin is not a terminal, using line-based input")
    return SimpleInputHandler(callback)

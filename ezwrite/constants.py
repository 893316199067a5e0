"""Constants and configuration for the ezwrite editor."""

class EditorConstants:
    """Central configuration constants for the editor."""

    # Document encoding
    STRUCK_MARKER = "\u200b\u2713"  # Invisible prefix marking a checked item
    INDENT = " " * 8  # One indent level for indent/unindent
    LINE_SEPARATOR = "\n"

    # Pages
    PAGE_COUNT = 5
    PAGES_STORAGE_KEY = "ezwrite-pages-v1"
    ACTIVE_PAGE_KEY = "ezwrite-active-page"
    LEGACY_STORAGE_KEY = "zen-writing-content"  # Single-document state before pages existed
    STORAGE_FILENAME = "storage.json"

    # Undo history
    HISTORY_LIMIT = 100
    HISTORY_DEBOUNCE = 0.5  # Seconds; pushes closer together than this coalesce

    # Timing
    TYPING_INDICATOR_TIMEOUT = 1.0  # Seconds without a keypress before the dot goes out
    TIMER_RESYNC_INTERVAL = 0.5  # Seconds between timer re-syncs while one is running

    # Timers
    POMODORO_WORK_MINUTES = 25
    POMODORO_BREAK_MINUTES = 5
    TIMER_PREFIX = "timer "

    # Slash commands
    SLASH_MAX_NAME = 10

    # Layout
    DOCUMENT_WIDTH = 65
    MIN_TERMINAL_WIDTH = 30
    DIVIDER_CHAR = "─"
    POPUP_MAX_WIDTH = 36

    # Export
    EXPORT_PREFIX = "ezwrite"

    # Signal pipe markers
    RESIZE_PIPE_MARKER = b'R'
    CONTINUE_PIPE_MARKER = b'V'
    INTERRUPT_PIPE_MARKER = b'C'

    # Status messages
    TERMINAL_TOO_NARROW_MESSAGE = "Terminal too narrow! Need at least {} columns."
    CURRENT_WIDTH_MESSAGE = "Current width: {} columns."

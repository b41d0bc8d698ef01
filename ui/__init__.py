"""UI layer -- Rich dashboard and output formatters."""

from .dashboard import (
    LiveDashboard,
    console,
    print_client_info,
    print_final_results,
    print_header,
    print_insight,
)
from .output import (
    create_result_json,
    format_text_result,
    save_json,
)

__all__ = [
    "LiveDashboard",
    "console",
    "create_result_json",
    "format_text_result",
    "print_client_info",
    "print_final_results",
    "print_header",
    "print_insight",
    "save_json",
]

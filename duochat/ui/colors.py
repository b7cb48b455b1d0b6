"""
DuoChat - UI Colors
"""

from rich.theme import Theme

COLORS = {
    'info': 'white',
    'success': 'green',
    'warning': 'yellow',
    'error': 'red',
    'incoming': 'green',
    'outgoing': 'cyan',
    'indicator': 'bright_white',
    'bar': 'bright_white',
    'bar.marker': 'black on bright_white',
    'input': 'cyan',
}

CHAT_THEME = Theme(COLORS)

LEVEL_STYLES = {
    'INFO': 'info',
    'SUCCESS': 'success',
    'WARNING': 'warning',
    'ERROR': 'error',
}

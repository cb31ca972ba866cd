"""ASCII art banner shown above the sign-in form."""

from textual.widgets import Static


class AsciiArtHeader(Static):
    """Banner with the 'TaskTrail' logo and an optional tagline below it."""

    DEFAULT_CSS = """
    AsciiArtHeader {
        height: auto;
        width: 100%;
        content-align: center middle;
        text-align: center;
        text-style: bold;
        color: $primary;
        padding-top: 1;
    }
    """

    LOGO = """\
 _____         _    _____          _ _
|_   _|_ _ ___| | _|_   _| __ __ _(_) |
  | |/ _` / __| |/ / | || '__/ _` | | |
  | | (_| \\__ \\   <  | || | | (_| | | |
  |_|\\__,_|___/_|\\_\\ |_||_|  \\__,_|_|_|"""

    def __init__(self, tagline: str = "") -> None:
        text = self.LOGO
        if tagline:
            text += f"\n\n{tagline}"
        super().__init__(text, markup=False)

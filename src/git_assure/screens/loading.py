"""Progress screen — one line per engine stage while an analysis runs."""

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.screen import Screen
from textual.widgets import Footer, Header, ProgressBar, Static

from git_assure.analyzer import STATUS_STEPS


class StageLog:
    """Status messages of one run; the newest is in progress, earlier ones are done."""

    def __init__(self, expected: int = STATUS_STEPS) -> None:
        self.expected = expected
        self.messages: list[str] = []
        self.failed = False

    def advance(self, message: str) -> None:
        self.messages.append(message)

    def fail(self) -> None:
        self.failed = True

    @property
    def complete(self) -> bool:
        return not self.failed and len(self.messages) >= self.expected

    @property
    def progress(self) -> int:
        return min(len(self.messages) * 100 // self.expected, 100)

    def render(self) -> str:
        lines = []
        last = len(self.messages) - 1
        for i, message in enumerate(self.messages):
            if i < last or self.complete:
                mark = "✔"
            elif self.failed:
                mark = "✘"
            else:
                mark = "▸"
            lines.append(f"{mark} {message}")
        return "\n".join(lines)


class LoadingScreen(Screen):
    """Shows the stages of the running analysis, or why it stopped."""

    BINDINGS = [
        ("b", "go_back", "Back"),
    ]

    CSS = """
    LoadingScreen {
        align: center middle;
    }
    #stages-panel {
        width: 80;
        height: auto;
        padding: 1 3;
        border: round $accent;
        background: $surface;
    }
    #stages-title {
        text-style: bold;
    }
    #stages {
        margin: 1 0;
    }
    #failure {
        display: none;
        color: $error;
    }
    #failure.shown {
        display: block;
    }
    """

    def __init__(self, repository: str) -> None:
        super().__init__()
        self.repository = repository
        self.stages = StageLog()
        self.failure = ""

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Vertical(id="stages-panel"):
            yield Static(f"🔍  Assessing {self.repository}", id="stages-title", markup=False)
            yield ProgressBar(total=100, show_eta=False, id="stages-progress")
            yield Static("", id="stages", markup=False)
            yield Static("", id="failure", markup=False)
        yield Footer()

    def on_mount(self) -> None:
        self._refresh_stages()

    def advance(self, message: str) -> None:
        self.stages.advance(message)
        self._refresh_stages()

    def show_failure(self, markdown: str) -> None:
        """Mark the current stage failed and show the error document."""
        self.stages.fail()
        self.failure = f"{markdown}\n\nPress b to go back and try again."
        self._refresh_stages()

    def _refresh_stages(self) -> None:
        # Status updates can arrive before compose has run.
        if not self.is_mounted:
            return
        self.query_one("#stages", Static).update(self.stages.render())
        self.query_one("#stages-progress", ProgressBar).update(progress=self.stages.progress)
        if self.failure:
            failure = self.query_one("#failure", Static)
            failure.update(self.failure)
            failure.add_class("shown")

    def action_go_back(self) -> None:
        self.app.pop_screen()

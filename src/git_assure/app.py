"""Main Textual TUI application for git-assure."""

from textual.app import App

from git_assure.analyzer import Analyzer
from git_assure.config import Settings
from git_assure.models import AnalysisResult
from git_assure.screens.home import HomeScreen
from git_assure.screens.loading import LoadingScreen
from git_assure.screens.results import ResultsScreen


class GitAssureApp(App):
    """TUI application for repository risk analysis."""

    TITLE = "Git-Assure"
    SUB_TITLE = "Sustainability · Security · Dependencies"

    CSS = """
    Screen {
        background: $background;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
    ]

    def __init__(self, settings: Settings | None = None) -> None:
        super().__init__()
        self.settings = settings or Settings()

    def on_mount(self) -> None:
        self.push_screen(HomeScreen())

    def run_analysis(self, repository: str) -> None:
        """Kick off the analysis — called from HomeScreen."""
        loading = LoadingScreen(repository)
        self.push_screen(loading)

        async def _do_work() -> None:
            analyzer = Analyzer(
                token=self.settings.github_token,
                settings=self.settings,
                on_status=loading.advance,
            )
            try:
                result = await analyzer.analyze(repository)
            finally:
                await analyzer.close()

            if result.failed:
                loading.show_failure(result.markdown)
                return
            self._show_results(repository, result)

        self.run_worker(_do_work(), exclusive=True)

    def _show_results(self, repository: str, result: AnalysisResult) -> None:
        """Replace loading screen with results."""
        self.pop_screen()
        self.push_screen(ResultsScreen(repository, result))

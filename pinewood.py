import argparse
import logging
from pathlib import Path
from typing import Any, Optional

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import (
    Button,
    DataTable,
    Footer,
    Header,
    Input,
    Label,
    Select,
    SelectionList,
    Static,
    TabbedContent,
    TabPane,
)

from database import DerbyDatabase
from derby.bracket import BracketRound
from derby.category import Category
from derby.contestant import TRACK_POSITIONS
from derby.errors import PreconditionError
from derby.heat import FinishOrder
from derby.ranking import WILD_CARD_FINALISTS, category_leaders, wild_cards
from derby.session import DerbySession
from derby.settings import DerbyConfig, load_config


class CurrentHeatDisplay(Static):
    BORDER_TITLE = "Current Race"
    first_place: reactive[Optional[int]] = reactive(None)  # type: ignore[valid-type]

    def __init__(self, session: DerbySession, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.session: DerbySession = session

    def render(self) -> str:
        heat = self.session.current_heat()
        if heat is None:
            return "All heats completed!"
        lines = [f"{heat} ({self.session.current_heat_index + 1} of {len(self.session.heats)})", ""]
        for position in TRACK_POSITIONS:
            marker = "  [1st]" if position == self.first_place else ""
            lines.append(f"Track {position}: {heat.slots[position].name}{marker}")
        lines.append("")
        if self.first_place is None:
            lines.append("Press the track number of 1st place.")
        else:
            lines.append("Press the track number of 2nd place. 3rd place will be automatic.")
        return "\n".join(lines)

    def refresh_display(self) -> None:
        self.refresh()


class UpcomingHeatsDisplay(DataTable[Any]):  # type: ignore[type-arg]
    def __init__(self, session: DerbySession, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.session: DerbySession = session

    def refresh_display(self) -> None:
        self.clear(columns=True)
        self.add_columns("Heat", "Track 1", "Track 2", "Track 3")
        for heat in self.session.upcoming_heats():
            self.add_row(str(heat), *(heat.slots[p].name for p in TRACK_POSITIONS))


class LeaderboardDisplay(DataTable[Any]):  # type: ignore[type-arg]
    """Standings for one category, or the wild card race when category is None."""

    def __init__(self, session: DerbySession, category: Optional[Category], **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.session: DerbySession = session
        self.category: Optional[Category] = category

    def refresh_display(self) -> None:
        self.clear(columns=True)
        self.add_columns("Rank", "Racer", "Points", "1st", "2nd", "3rd", "")
        advancing = self.session.advancing_ids()
        if self.category is None:
            leader_ids = {c.contestant_id for c in category_leaders(self.session.contestants)}
            rows = list(enumerate(wild_cards(self.session.contestants, leader_ids), start=1))
            # Only the first two wild card rows advance; the rest are chasing them.
            marks = {c.contestant_id for rank, c in rows if rank <= WILD_CARD_FINALISTS}
        else:
            rows = self.session.leaderboard(self.category)
            marks = advancing
        for rank, contestant in rows:
            self.add_row(
                f"#{rank}",
                contestant.name,
                contestant.score,
                contestant.finishes.first,
                contestant.finishes.second,
                contestant.finishes.third,
                "advancing" if contestant.contestant_id in marks else "",
            )


class RosterDisplay(DataTable[Any]):  # type: ignore[type-arg]
    def __init__(self, session: DerbySession, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.session: DerbySession = session
        self.cursor_type = "row"

    def refresh_display(self) -> None:
        self.clear(columns=True)
        self.add_columns("Racer", "Category", "Points", "Races")
        for contestant in self.session.contestants:
            self.add_row(
                contestant.name,
                str(contestant.category),
                contestant.score,
                contestant.races,
                key=contestant.contestant_id,
            )

    def selected_contestant_id(self) -> Optional[str]:
        if not self.row_count:
            return None
        row_key = self.coordinate_to_cell_key(self.cursor_coordinate).row_key
        return row_key.value


class BracketDisplay(Static):
    BORDER_TITLE = "Championship"

    def __init__(self, session: DerbySession, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.session: DerbySession = session

    def _racer(self, contestant_id: Optional[str], winner: Optional[str]) -> str:
        name = self.session.display_name(contestant_id)
        if contestant_id is not None and contestant_id == winner:
            return f"*{name}*"
        return name

    def render(self) -> str:
        championship = self.session.championship
        if not championship.active:
            return "Championship not started. Press 'c' once the heats are done."
        bracket = championship.bracket
        lines = []
        for bracket_round in BracketRound:
            lines.append(str(bracket_round))
            for index, matchup in enumerate(bracket.matchups(bracket_round)):
                lines.append(
                    f"  {index + 1}. {self._racer(matchup.racer1, matchup.winner)}"
                    f" vs {self._racer(matchup.racer2, matchup.winner)}"
                )
            lines.append("")
        champion = championship.champion
        lines.append(f"Champion: {champion.name}" if champion else "Awaiting champion...")
        return "\n".join(lines)

    def refresh_display(self) -> None:
        self.refresh()


class Pinewood(App[Any]):  # type: ignore[type-arg]
    TITLE = "Pinewood Derby"
    SUB_TITLE = "Heats, standings and championship"
    CSS = """
    #setup_controls {
        height: auto;
        padding: 1;
    }

    #name_input {
        width: 2fr;
    }

    #category_select {
        width: 1fr;
    }

    CurrentHeatDisplay {
        padding: 1;
        margin: 1;
        border: $secondary tall;
        height: auto;
    }

    BracketDisplay {
        padding: 1 2;
    }

    LeaderboardDisplay {
        height: auto;
        margin-bottom: 1;
    }
    """

    BINDINGS = [
        Binding("1", "place(1)", "Track 1"),
        Binding("2", "place(2)", "Track 2"),
        Binding("3", "place(3)", "Track 3"),
        Binding("g", "generate_heats", "Generate Heats"),
        Binding("c", "start_championship", "Championship"),
        Binding("w", "select_winner", "Pick Winner"),
        Binding("d", "remove_contestant", "Remove Racer"),
        Binding("t", "load_test_data", "Test Data"),
        Binding("x", "clear_all", "Clear All"),
    ]

    def __init__(self, *, config: DerbyConfig, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.config = config

        logging.basicConfig(
            filename="derby.log",
            filemode="a",
            format="%(asctime)s %(levelname)s:%(message)s",
            level=logging.INFO,
        )
        logging.info("Pinewood initialized")

        self.db = DerbyDatabase(config.db_path)
        saved = self.db.load()
        if saved:
            self.session = DerbySession.from_dict(saved, runs_per_position=config.runs_per_position)
            logging.info(f"Restored derby with {len(self.session.contestants)} contestants")
        else:
            self.session = DerbySession(runs_per_position=config.runs_per_position)
            for entry in config.contestants:
                try:
                    self.session.add_contestant(entry.get("name", ""), entry.get("category", ""))
                except PreconditionError as e:
                    logging.error(f"Skipping contestant from config {entry}: {e}")

    def compose(self) -> ComposeResult:
        yield Header()
        with TabbedContent(id="tabbed_content"):
            with TabPane("Scoreboard", id="scoreboard_tab"):
                with Horizontal():
                    with Vertical():
                        yield CurrentHeatDisplay(self.session, id="current_heat")
                        yield Label("Upcoming Heats")
                        yield UpcomingHeatsDisplay(self.session, id="upcoming_heats")
                    with Vertical():
                        for category in Category:
                            yield Label(f"{category} Quorum")
                            yield LeaderboardDisplay(self.session, category, id=f"leaderboard_{category.value}")
                        yield Label("Wild Card")
                        yield LeaderboardDisplay(self.session, None, id="leaderboard_wild_card")
            with TabPane("Setup", id="setup_tab"):
                with Horizontal(id="setup_controls"):
                    yield Input(placeholder="Racer name", id="name_input")
                    yield Select(
                        [(str(category), category.value) for category in Category],
                        value=Category.DEACON.value,
                        allow_blank=False,
                        id="category_select",
                    )
                    yield Button("Add Racer", variant="success", id="add_btn")
                    yield Button("Generate Heats", id="generate_btn")
                yield RosterDisplay(self.session, id="roster")
            with TabPane("Championship", id="championship_tab"):
                yield BracketDisplay(self.session, id="bracket")
        yield Footer()

    def on_mount(self) -> None:
        self.refresh_displays()

    def refresh_displays(self) -> None:
        self.query_one(CurrentHeatDisplay).refresh_display()
        self.query_one(UpcomingHeatsDisplay).refresh_display()
        for display in self.query(LeaderboardDisplay):
            display.refresh_display()
        self.query_one(RosterDisplay).refresh_display()
        self.query_one(BracketDisplay).refresh_display()

    def save_state(self) -> None:
        if not self.db.save(self.session.to_dict()):
            self.notify("Could not save derby data", severity="warning")

    def run_command(self, command, *args: Any) -> Any:
        """Run a session command, reporting rejections instead of raising them."""
        try:
            result = command(*args)
        except PreconditionError as e:
            logging.info(f"Command rejected: {e}")
            self.notify(str(e), severity="error")
            return None
        self.save_state()
        self.refresh_displays()
        return result

    def action_place(self, position: int) -> None:
        heat_display = self.query_one(CurrentHeatDisplay)
        if self.session.current_heat() is None:
            self.notify("All heats completed!", severity="warning")
            return
        if heat_display.first_place is None:
            heat_display.first_place = position
            return
        if heat_display.first_place == position:
            return

        finish_order = FinishOrder.from_first_and_second(heat_display.first_place, position)
        heat_display.first_place = None
        entry = self.run_command(self.session.record_result, finish_order)
        if entry:
            self.notify(f"1st {entry.first}, 2nd {entry.second}, 3rd {entry.third}")

    def action_generate_heats(self) -> None:
        schedules = self.run_command(self.session.generate_heats)
        if schedules is None:
            return
        for schedule in schedules.values():
            if not schedule.skipped and not schedule.complete:
                self.notify(
                    f"{schedule.category}: heats stopped early, some racers are short of runs",
                    severity="warning",
                )
        self.query_one(CurrentHeatDisplay).first_place = None
        self.query_one(TabbedContent).active = "scoreboard_tab"

    def action_start_championship(self) -> None:
        if self.run_command(self.session.start_championship):
            self.query_one(TabbedContent).active = "championship_tab"

    def action_select_winner(self) -> None:
        if not self.session.championship.active:
            self.notify("The championship has not started", severity="error")
            return
        self.push_screen(
            SelectWinnerScreen(self.session),
            lambda choice: self.record_winner(choice) if choice else None,
        )

    def record_winner(self, choice: tuple[BracketRound, int, int]) -> None:
        bracket_round, index, slot = choice
        if self.session.championship.bracket.matchup(bracket_round, index).is_decided:
            self.notify(f"{bracket_round} matchup {index + 1} is already decided", severity="warning")
            return
        winner = self.run_command(self.session.select_bracket_winner, bracket_round, index, slot)
        if winner:
            self.notify(f"{winner.name} wins {bracket_round} matchup {index + 1}")

    def action_remove_contestant(self) -> None:
        contestant_id = self.query_one(RosterDisplay).selected_contestant_id()
        if contestant_id:
            self.run_command(self.session.remove_contestant, contestant_id)

    def action_load_test_data(self) -> None:
        self.run_command(self.session.load_test_data)

    def action_clear_all(self) -> None:
        self.push_screen(ConfirmClearScreen(), lambda confirmed: self.clear_all() if confirmed else None)

    def clear_all(self) -> None:
        logging.warning("Clearing all derby data")
        self.session.clear()
        self.db.clear()
        self.query_one(CurrentHeatDisplay).first_place = None
        self.refresh_displays()

    @on(Button.Pressed, "#add_btn")
    @on(Input.Submitted, "#name_input")
    def handle_add_contestant(self) -> None:
        name_input = self.query_one("#name_input", Input)
        category = self.query_one("#category_select", Select).value
        if self.run_command(self.session.add_contestant, name_input.value, str(category)):
            name_input.value = ""

    @on(Button.Pressed, "#generate_btn")
    def handle_generate(self) -> None:
        self.action_generate_heats()


class ConfirmClearScreen(ModalScreen[bool]):
    """
    Asks before wiping every contestant, heat, result and the saved snapshot.
    """

    BINDINGS = [
        Binding("escape", "dismiss(False)", "Cancel"),
    ]

    CSS = """
    #confirm-clear-modal {
        width: 50%;
        height: auto;
        background: $panel;
        border: solid $error;
        padding: 1 2;
    }

    #confirm-clear-buttons {
        height: auto;
        width: 100%;
        align: center middle;
        margin-top: 1;
    }

    Button {
        margin: 0 1;
    }
    """

    def compose(self) -> ComposeResult:
        with Vertical(id="confirm-clear-modal"):
            yield Label("Clear all data? This cannot be undone.")
            with Horizontal(id="confirm-clear-buttons"):
                yield Button("Clear", variant="error", id="confirm-clear-btn")
                yield Button("Cancel", variant="primary", id="cancel-clear-btn")

    @on(Button.Pressed, "#confirm-clear-btn")
    def handle_confirm(self):
        self.dismiss(True)

    @on(Button.Pressed, "#cancel-clear-btn")
    def handle_cancel(self):
        self.dismiss(False)


class SelectWinnerScreen(ModalScreen[Optional[tuple[BracketRound, int, int]]]):
    """
    A modal screen listing every racer in a matchup that is ready to be decided.
    """

    BINDINGS = [
        Binding("escape", "dismiss(None)", "Cancel"),
    ]

    CSS = """
    #winner-modal {
        width: 60%;
        height: 80%;
        background: $panel;
        border: solid $accent;
        padding: 1 2;
    }

    #winner-list {
        height: 1fr;
        margin-bottom: 1;
    }
    """

    def __init__(self, session: DerbySession):
        super().__init__()
        self.session = session

    def compose(self) -> ComposeResult:
        with Vertical(id="winner-modal"):
            yield Label("Select the winner of a matchup:")
            yield SelectionList(id="winner-list")
            yield Button("Cancel", variant="error", id="cancel-btn")

    def on_mount(self):
        winner_list = self.query_one("#winner-list", SelectionList)
        winner_list.clear_options()
        bracket = self.session.championship.bracket
        for bracket_round in BracketRound:
            for index, matchup in enumerate(bracket.matchups(bracket_round)):
                if not matchup.is_ready or matchup.is_decided:
                    continue
                for slot in (1, 2):
                    name = self.session.display_name(matchup.racer(slot))
                    winner_list.add_option((f"{bracket_round} {index + 1}: {name}", (bracket_round.value, index, slot)))

    @on(SelectionList.SelectedChanged)
    def handle_selection_change(self, event: SelectionList.SelectedChanged):
        selection = event.selection_list.selected
        if selection:
            round_value, index, slot = selection[0]
            self.dismiss((BracketRound(round_value), index, slot))

    @on(Button.Pressed, "#cancel-btn")
    def handle_cancel(self):
        self.dismiss(None)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run a pinewood derby from the terminal.")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.json")
    parser.add_argument("--db", default=None, help="SQLite file holding the saved derby")
    parser.add_argument("--test-data", action="store_true", help="Start with random test contestants")
    args = parser.parse_args()

    config = load_config(args.config)
    if args.db:
        config.db_path = args.db

    app = Pinewood(config=config)
    if args.test_data:
        app.session.load_test_data()
        app.save_state()
    app.run()

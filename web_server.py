#!/usr/bin/env python3
"""
Read-only scoreboard server.
Serves standings, the heat queue and the championship bracket from the saved derby as JSON.
"""

import argparse
import logging
from pathlib import Path
from typing import Any

from aiohttp import web  # type: ignore[import-untyped]

from database import DerbyDatabase
from derby.bracket import BracketRound
from derby.category import Category
from derby.contestant import Contestant
from derby.session import DerbySession
from derby.settings import DerbyConfig, load_config

# Logging setup
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def contestant_row(position: int, contestant: Contestant, advancing: set[str]) -> dict[str, Any]:
    return {
        "position": position,
        "contestant_id": contestant.contestant_id,
        "name": contestant.name,
        "category": contestant.category.value,
        "score": contestant.score,
        "finishes": contestant.finishes.to_dict(),
        "advancing": contestant.contestant_id in advancing,
    }


class ScoreboardServer:
    def __init__(self, config: DerbyConfig) -> None:
        self.config: DerbyConfig = config
        self.port: int = config.web_port
        self.app: web.Application = web.Application()
        self.db: DerbyDatabase = DerbyDatabase(config.db_path)

        self.app.router.add_get("/", self.index_handler)
        self.app.router.add_get("/api/state", self.get_state)
        self.app.router.add_get("/api/standings", self.get_standings)
        self.app.router.add_get("/api/heats", self.get_heats)
        self.app.router.add_get("/api/results", self.get_results)
        self.app.router.add_get("/api/bracket", self.get_bracket)

    def load_session(self) -> DerbySession:
        """Rebuild the session from the latest snapshot; an empty session if nothing is saved"""
        return DerbySession.from_dict(self.db.load(), runs_per_position=self.config.runs_per_position)

    async def index_handler(self, request: web.Request) -> web.Response:
        """Short summary of where the derby is at"""
        session = self.load_session()
        current = session.current_heat()
        champion = session.championship.champion
        return web.json_response(
            {
                "contestants": len(session.contestants),
                "heats": len(session.heats),
                "heats_completed": session.current_heat_index,
                "current_heat": str(current) if current else None,
                "championship_active": session.championship.active,
                "champion": champion.name if champion else None,
                "saved_at": self.db.saved_at(),
            }
        )

    async def get_state(self, request: web.Request) -> web.Response:
        """The full saved snapshot"""
        return web.json_response(self.load_session().to_dict())

    async def get_standings(self, request: web.Request) -> web.Response:
        """Leaderboard per category, or for one category with ?category="""
        session = self.load_session()
        advancing = session.advancing_ids()

        label = request.query.get("category")
        if label:
            try:
                categories = [Category.parse(label)]
            except ValueError as e:
                return web.json_response({"error": str(e)}, status=400)
        else:
            categories = list(Category)

        standings = {
            category.value: [
                contestant_row(position, contestant, advancing)
                for position, contestant in session.leaderboard(category)
            ]
            for category in categories
        }
        return web.json_response({"standings": standings})

    async def get_heats(self, request: web.Request) -> web.Response:
        """The heat queue with the cursor"""
        session = self.load_session()
        return web.json_response(
            {
                "current_heat_index": session.current_heat_index,
                "heats": [heat.to_dict() for heat in session.heats],
            }
        )

    async def get_results(self, request: web.Request) -> web.Response:
        """Results log, newest last"""
        session = self.load_session()
        return web.json_response({"results": [entry.to_dict() for entry in session.results]})

    async def get_bracket(self, request: web.Request) -> web.Response:
        """Championship bracket with names filled in"""
        session = self.load_session()
        championship = session.championship
        if not championship.active:
            return web.json_response({"error": "Championship has not started"}, status=404)

        bracket = championship.bracket
        rounds = {}
        for bracket_round in BracketRound:
            rounds[bracket_round.value] = [
                {
                    "racer1": session.display_name(matchup.racer1) if matchup.racer1 else None,
                    "racer2": session.display_name(matchup.racer2) if matchup.racer2 else None,
                    "winner": session.display_name(matchup.winner) if matchup.winner else None,
                }
                for matchup in bracket.matchups(bracket_round)
            ]
        champion = championship.champion
        return web.json_response(
            {
                "finalists": [c.name for c in championship.finalists],
                "rounds": rounds,
                "champion": champion.name if champion else None,
            }
        )

    def run(self) -> None:
        """Start the web server"""
        logger.info(f"Starting scoreboard server on http://localhost:{self.port}")
        logger.info(f"Reading derby data from: {self.config.db_path}")
        web.run_app(self.app, port=self.port)


def main() -> None:
    """Main entry point"""
    parser = argparse.ArgumentParser(description="Serve the derby scoreboard as JSON.")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.json")
    parser.add_argument("--port", type=int, default=None, help="Port to listen on")
    args = parser.parse_args()

    config = load_config(args.config)
    if args.port:
        config.web_port = args.port

    server = ScoreboardServer(config)
    server.run()


if __name__ == "__main__":
    main()

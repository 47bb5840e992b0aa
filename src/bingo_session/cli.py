from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Optional

from .config import Settings, load_settings
from .engine import DrawOptions, available_numbers, history_view, letter_for
from .errors import InvalidCsvHeaderError, NoAvailableNumbersError
from .logging_config import configure_logging
from .persistence import JsonFileMedium, VersionedStore
from .prizes import PrizeService
from .session import SessionService

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_NOTHING_TO_RESUME = 2


def open_store(settings: Settings) -> VersionedStore:
    return VersionedStore(JsonFileMedium(settings.storage_path), prefix=settings.storage_prefix)


def _emit(payload: Any) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _session(args: argparse.Namespace) -> SessionService:
    return SessionService(args.store, default_bgm_volume=args.settings.default_bgm_volume)


def _cmd_start(args: argparse.Namespace) -> int:
    envelope = _session(args).start_session(reset_prizes=not args.keep_prizes)
    _emit(envelope.to_dict())
    return EXIT_OK


def _cmd_resume(args: argparse.Namespace) -> int:
    envelope = _session(args).resume_session()
    if envelope is None:
        _emit({"error": "no-stored-session"})
        return EXIT_NOTHING_TO_RESUME
    _emit(envelope.to_dict())
    return EXIT_OK


def _cmd_draw(args: argparse.Namespace) -> int:
    sessions = _session(args)
    envelope = sessions.ensure_session()
    try:
        envelope = sessions.draw(envelope, DrawOptions(seed=args.seed))
    except NoAvailableNumbersError as exc:
        _emit({"error": exc.code})
        return EXIT_FAILED
    number = envelope.game_state.current_number
    _emit(
        {
            "number": number,
            "letter": letter_for(number),
            "sequence": len(envelope.game_state.draw_history),
            "remaining": len(available_numbers(envelope.game_state.draw_history)),
        }
    )
    return EXIT_OK


def _cmd_reset(args: argparse.Namespace) -> int:
    sessions = _session(args)
    envelope = sessions.reset_game(sessions.ensure_session())
    _emit(envelope.game_state.to_dict())
    return EXIT_OK


def _cmd_status(args: argparse.Namespace) -> int:
    sessions = _session(args)
    envelope = sessions.resume_session()
    payload = {
        "hasGameState": sessions.has_stored_game_state(),
        "hasDrawHistory": sessions.has_stored_draw_history(),
        "hasPrizeSelection": sessions.has_stored_prize_selection(),
    }
    if envelope is not None:
        payload["currentNumber"] = envelope.game_state.current_number
        payload["history"] = [entry.to_dict() for entry in history_view(envelope.game_state)]
        payload["remaining"] = len(available_numbers(envelope.game_state.draw_history))
    _emit(payload)
    return EXIT_OK


def _cmd_import_csv(args: argparse.Namespace) -> int:
    path = Path(args.path)
    text = path.read_text(encoding="utf-8-sig")
    try:
        result = PrizeService(args.store).import_prizes(text, path.name)
    except InvalidCsvHeaderError as exc:
        _emit({"error": exc.code})
        return EXIT_FAILED
    _emit(result.to_dict())
    return EXIT_OK


def _cmd_export_csv(args: argparse.Namespace) -> int:
    text = PrizeService(args.store).export_prizes()
    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text + "\n", encoding="utf-8")
        logger.info("Exported prizes to %s", out_path)
    else:
        print(text)
    return EXIT_OK


def _cmd_clear(args: argparse.Namespace) -> int:
    removed = _session(args).clear_all()
    _emit({"removed": removed})
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="bingo-session", description="Bingo caller session tools")
    p.add_argument("--data-dir", help="Directory holding the storage file", default=None)
    p.add_argument("--config", help="Optional YAML settings file", default=None)
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    s = sub.add_parser("start", help="Start a fresh game")
    s.add_argument("--keep-prizes", action="store_true", help="Keep prize selection flags")
    s.set_defaults(func=_cmd_start)

    sub.add_parser("resume", help="Print the stored session").set_defaults(func=_cmd_resume)

    d = sub.add_parser("draw", help="Draw the next number")
    d.add_argument("--seed", type=int, default=None, help="Deterministic selection seed")
    d.set_defaults(func=_cmd_draw)

    sub.add_parser("reset", help="Clear the draw history").set_defaults(func=_cmd_reset)
    sub.add_parser("status", help="Show session status").set_defaults(func=_cmd_status)

    i = sub.add_parser("import-csv", help="Replace prizes with the rows of a CSV file")
    i.add_argument("path", help="CSV file to import")
    i.set_defaults(func=_cmd_import_csv)

    e = sub.add_parser("export-csv", help="Export prizes as CSV")
    e.add_argument("--out", help="Optional output file", default=None)
    e.set_defaults(func=_cmd_export_csv)

    sub.add_parser("clear", help="Delete every versioned key").set_defaults(func=_cmd_clear)
    return p


def main(argv: Optional[list] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = load_settings(args.config)
    if args.data_dir:
        settings = replace(settings, data_dir=Path(args.data_dir))
    configure_logging(level_name="DEBUG" if args.debug else settings.log_level)
    args.settings = settings
    args.store = open_store(settings)
    return args.func(args)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main(sys.argv[1:]))

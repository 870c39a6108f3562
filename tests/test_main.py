from __future__ import annotations

import logging
from dataclasses import replace

from tasktrack.domain.errors import ValidationFailed
from tasktrack.infra.logging import setup_logging
from tasktrack.main import EXIT_INVALID, EXIT_NOT_FOUND, EXIT_OK, run


def test_points_command_prints_balance(service, make_user, capsys) -> None:
    user_id = make_user(points=42)

    assert run(["points", str(user_id)], service=service) == EXIT_OK
    assert capsys.readouterr().out.strip() == "42"


def test_points_for_unknown_user(service, capsys) -> None:
    assert run(["points", "999"], service=service) == EXIT_NOT_FOUND
    assert "not found" in capsys.readouterr().err


def test_tasks_command_lists_filtered_tasks(service, make_user, capsys) -> None:
    user_id = make_user()
    done = service.create_task(user_id, {"title": "Done", "reward_points": 1})
    service.create_task(user_id, {"title": "Open"})
    service.complete_task(user_id, done.id)

    assert run(["tasks", str(user_id), "--status", "incomplete"], service=service) == EXIT_OK

    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 1
    assert "Open" in lines[0]
    assert "[Created]" in lines[0]


def test_failures_map_to_exit_codes(service, make_user, monkeypatch) -> None:
    user_id = make_user()

    def rejecting(*args, **kwargs):
        raise ValidationFailed("nope")

    monkeypatch.setattr(service, "list_tasks", rejecting)

    assert run(["tasks", str(user_id)], service=service) == EXIT_INVALID


def test_setup_logging_writes_rotating_file(tmp_path, settings) -> None:
    log_file = setup_logging(replace(settings, log_dir="logs", log_level="debug"), tmp_path)
    root = logging.getLogger()
    try:
        logging.getLogger("tasktrack.test").info("hello log")
        for handler in root.handlers:
            handler.flush()

        assert log_file == tmp_path / "logs" / "tasktrack.log"
        assert "hello log" in log_file.read_text(encoding="utf-8")
        assert root.level == logging.DEBUG
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()

from __future__ import annotations

from hms_backend.cli import main


def test_init_and_booking_flow(tmp_path, capsys):
    url = f"sqlite:///{tmp_path / 'cli.sqlite'}"

    main(["--database-url", url, "init"])
    assert "practitioners, clients, session_identity" in capsys.readouterr().out

    main(["--database-url", url, "init"])
    assert "nessun seed" in capsys.readouterr().out

    main([
        "--database-url", url, "book",
        "--client", "Jane Smith",
        "--practitioner", "Dr. Emily Williams",
        "--date", "2025-02-01",
        "--time", "10:30 AM",
        "--reason", "follow-up",
    ])
    assert "Visita prenotata: 1 (Confirmed)" in capsys.readouterr().out

    main(["--database-url", url, "set-status", "1", "Cancelled"])
    assert "Visita 1: Cancelled" in capsys.readouterr().out

    main(["--database-url", url, "history", "1"])
    out = capsys.readouterr().out
    assert "- -> Confirmed" in out
    assert "Confirmed -> Cancelled" in out

    main(["--database-url", url, "list", "visits"])
    assert "Jane Smith -> Dr. Emily Williams | Cancelled | follow-up" in capsys.readouterr().out


def test_add_commands(tmp_path, capsys):
    url = f"sqlite:///{tmp_path / 'cli.sqlite'}"
    main(["--database-url", url, "init"])
    capsys.readouterr()

    main(["--database-url", url, "add-practitioner", "--name", "Dr. House", "--specialization", "Diagnostics"])
    assert "Professionista creato: 6" in capsys.readouterr().out

    main(["--database-url", url, "add-client", "--name", "Ann Lee", "--age", "41"])
    assert "Cliente creato: 5" in capsys.readouterr().out

    main(["--database-url", url, "set-status", "99", "Confirmed"])
    assert "Visita non trovata." in capsys.readouterr().out

    main(["--database-url", url, "list", "practitioners"])
    assert "6 | Dr. House | Diagnostics | -" in capsys.readouterr().out

from __future__ import annotations

import argparse
import logging

from hms_backend.config import LOG_LEVEL
from hms_backend.db import configure_engine
from hms_backend.seed import seed_if_empty
from hms_backend.services import (
    create_client,
    create_practitioner,
    create_visit,
    delete_visit,
    init_db,
    list_clients,
    list_practitioners,
    list_visits,
    update_visit_status,
    visit_status_history,
)


def cmd_init(args: argparse.Namespace) -> None:
    seeded = seed_if_empty()
    if seeded:
        print(f"DB inizializzato, seed di: {', '.join(seeded)}.")
    else:
        print("DB già popolato: nessun seed.")


def cmd_list(args: argparse.Namespace) -> None:
    if args.entity == "practitioners":
        for p in list_practitioners():
            print(f"{p['id']} | {p['name']} | {p['specialization'] or '-'} | {p['email'] or '-'}")
    elif args.entity == "clients":
        for c in list_clients():
            print(f"{c['id']} | {c['name']} | {c['age'] if c['age'] is not None else '-'} | {c['email'] or '-'}")
    elif args.entity == "visits":
        for v in list_visits():
            print(
                f"{v['id']} | {v['date']} {v['time']} | {v['clientName']} -> {v['practitionerName']} | "
                f"{v['status']} | {v['reason'] or '-'}"
            )


def cmd_add_practitioner(args: argparse.Namespace) -> None:
    p = create_practitioner(args.name, args.specialization, args.contact, args.email)
    print(f"Professionista creato: {p['id']}")


def cmd_add_client(args: argparse.Namespace) -> None:
    c = create_client(args.name, args.age, args.contact, args.email, args.last_visit)
    print(f"Cliente creato: {c['id']}")


def cmd_book(args: argparse.Namespace) -> None:
    v = create_visit(
        client_name=args.client,
        practitioner_name=args.practitioner,
        date=args.date,
        time=args.time,
        reason=args.reason,
    )
    print(f"Visita prenotata: {v['id']} ({v['status']})")


def cmd_set_status(args: argparse.Namespace) -> None:
    v = update_visit_status(args.visit_id, args.status)
    print(f"Visita {v['id']}: {v['status']}" if v else "Visita non trovata.")


def cmd_delete_visit(args: argparse.Namespace) -> None:
    delete_visit(args.visit_id)
    print("Cancellata (se esisteva).")


def cmd_history(args: argparse.Namespace) -> None:
    events = visit_status_history(args.visit_id)
    if not events:
        print("Nessun cambio di stato registrato.")
        return

    for e in events:
        print(f"{e['changedAt']} | {e['fromStatus'] or '-'} -> {e['toStatus']}")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="hms-cli", description="CLI archivio visite (operatore)")
    p.add_argument("--database-url", default=None, help="Sovrascrive DATABASE_URL")
    sub = p.add_subparsers(required=True)

    p_init = sub.add_parser("init", help="Crea tabelle e carica il seed (se vuote)")
    p_init.set_defaults(func=cmd_init)

    p_list = sub.add_parser("list", help="Lista entità")
    p_list.add_argument("entity", choices=["practitioners", "clients", "visits"])
    p_list.set_defaults(func=cmd_list)

    p_addp = sub.add_parser("add-practitioner", help="Crea professionista")
    p_addp.add_argument("--name", required=True)
    p_addp.add_argument("--specialization", default=None)
    p_addp.add_argument("--contact", default=None)
    p_addp.add_argument("--email", default=None)
    p_addp.set_defaults(func=cmd_add_practitioner)

    p_addc = sub.add_parser("add-client", help="Crea cliente")
    p_addc.add_argument("--name", required=True)
    p_addc.add_argument("--age", type=int, default=None)
    p_addc.add_argument("--contact", default=None)
    p_addc.add_argument("--email", default=None)
    p_addc.add_argument("--last-visit", default=None, help="YYYY-MM-DD")
    p_addc.set_defaults(func=cmd_add_client)

    p_book = sub.add_parser("book", help="Prenota visita")
    p_book.add_argument("--client", required=True, help="Nome cliente")
    p_book.add_argument("--practitioner", required=True, help="Nome professionista")
    p_book.add_argument("--date", required=True, help="YYYY-MM-DD")
    p_book.add_argument("--time", required=True, help="es: 09:00 AM")
    p_book.add_argument("--reason", default=None)
    p_book.set_defaults(func=cmd_book)

    p_status = sub.add_parser("set-status", help="Conferma / annulla visita")
    p_status.add_argument("visit_id", type=int)
    p_status.add_argument("status", choices=["Confirmed", "Cancelled"])
    p_status.set_defaults(func=cmd_set_status)

    p_del = sub.add_parser("delete-visit", help="Cancella visita")
    p_del.add_argument("visit_id", type=int)
    p_del.set_defaults(func=cmd_delete_visit)

    p_hist = sub.add_parser("history", help="Storico stati di una visita")
    p_hist.add_argument("visit_id", type=int)
    p_hist.set_defaults(func=cmd_history)

    return p


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(level=LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.database_url:
        configure_engine(args.database_url)
    init_db()  # garantisce tabelle
    args.func(args)


if __name__ == "__main__":
    main()

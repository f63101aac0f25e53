"""
Command line access to the quotation API.

  proforma login seller@example.com
  proforma price items.json
  proforma quotations list
  proforma quotations create quotation.json
  proforma quotations send <id> --to customer@example.com
  proforma quotations accept <id>
"""
from __future__ import annotations

import argparse
import getpass
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from pydantic import ValidationError

from proforma.logging_config import setup_logging
from proforma.models.quotation import Quotation
from proforma.services.auth_service import AuthService
from proforma.services.pricing import format_amount
from proforma.services.quotation_service import QuotationService
from proforma.services.workflow_service import QuotationWorkflow, TransitionError
from proforma.settings import get_settings
from proforma.storage.api_client import ApiClient, ApiError

log = logging.getLogger(__name__)


def _load_json(path: str) -> Any:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def _status_label(q: Quotation) -> str:
    if not q.is_known_status:
        return f"{q.status} (unrecognised)"
    return f"{q.status}, closed" if q.is_closed else q.status


def _print_quotation(q: Quotation) -> None:
    customer = q.customer.name if q.customer else (q.customer_id or "")
    print(f"Proforma {q.number or q.id}  [{_status_label(q)}]  {customer}")
    print(f"  issued {q.issue_date or '-'}  due {q.due_date or '-'}")
    for it in q.items:
        print(f"  {it.order + 1:>3}. {it.description[:40]:<40} {it.quantity:>8} x "
              f"{format_amount(it.unit_sale):>12} = {format_amount(it.line_total_sale):>14}")
    print(f"  cost     {format_amount(q.total_cost, q.currency)}")
    print(f"  subtotal {format_amount(q.subtotal_amount, q.currency)}")
    print(f"  total    {format_amount(q.total_amount, q.currency)}")


# ---------- Commands ---------- #

def cmd_login(args, auth: AuthService, **_: Any) -> int:
    password = args.password or getpass.getpass("Password: ")
    session = auth.login(args.email, password)
    print(f"Logged in as {session.user.display_name if session.user else args.email}")
    return 0


def cmd_logout(args, auth: AuthService, **_: Any) -> int:
    auth.logout()
    print("Logged out")
    return 0


def cmd_whoami(args, auth: AuthService, **_: Any) -> int:
    if not auth.session.is_authenticated:
        print("Not logged in")
        return 1
    user = auth.session.user
    print(f"{user.display_name} <{user.email}> ({user.role})" if user else "Logged in")
    return 0


def cmd_price(args, quotations: QuotationService, **_: Any) -> int:
    data = _load_json(args.file)
    rows = data.get("items", []) if isinstance(data, dict) else data
    currency = (data.get("currency") if isinstance(data, dict) else None) or get_settings().default_currency
    items, totals = quotations.preview(rows)
    for it in items:
        print(f"{it.order + 1:>3}. {it.description[:40]:<40} sale/unit {format_amount(it.unit_sale):>12}  "
              f"cost {format_amount(it.line_total_cost):>12}  sale {format_amount(it.line_total_sale):>12}")
    print(f"Total cost: {format_amount(totals.total_cost, currency)}")
    print(f"Subtotal:   {format_amount(totals.subtotal_amount, currency)}")
    print(f"Total:      {format_amount(totals.total_amount, currency)}")
    return 0


def cmd_list(args, quotations: QuotationService, **_: Any) -> int:
    for q in quotations.list_quotations():
        if args.open and q.is_closed:
            continue
        customer = q.customer.name if q.customer else (q.customer_id or "")
        print(f"{q.id}  {q.number or '-':<12} {q.status:<10} {customer:<30} "
              f"{format_amount(q.total_amount, q.currency)}")
    return 0


def cmd_show(args, quotations: QuotationService, **_: Any) -> int:
    _print_quotation(quotations.get_quotation(args.id))
    return 0


def cmd_create(args, quotations: QuotationService, auth: AuthService, **_: Any) -> int:
    data = _load_json(args.file)
    if not isinstance(data, dict):
        raise ValueError(f"{args.file}: expected a JSON object")
    if auth.session.user and not data.get("userId") and not data.get("user_id"):
        data["userId"] = auth.session.user.id
    data.setdefault("currency", get_settings().default_currency)
    q = quotations.create_quotation(data)
    _print_quotation(q)
    return 0


def cmd_status(args, quotations: QuotationService, workflow: QuotationWorkflow, **_: Any) -> int:
    q = quotations.get_quotation(args.id)
    workflow.set_status(q, args.status)
    print(f"Quotation {q.number or q.id} is {q.status}")
    return 0


def cmd_accept(args, quotations: QuotationService, workflow: QuotationWorkflow, **_: Any) -> int:
    q = quotations.get_quotation(args.id)
    workflow.mark_accepted(q)
    print(f"Quotation {q.number or q.id} is {q.status}")
    return 0


def cmd_send(args, quotations: QuotationService, workflow: QuotationWorkflow, **_: Any) -> int:
    q = quotations.get_quotation(args.id)
    req = quotations.default_email_request(q, to_email=args.to, subject=args.subject, body=args.body)
    email = workflow.send_quotation(q, req)
    if not email.succeeded:
        print(f"Email to {email.to_email} failed: {email.error_detail or email.status}", file=sys.stderr)
        return 1
    print(f"Sent to {email.to_email}; quotation {q.number or q.id} is {q.status}")
    return 0


def cmd_pdf(args, quotations: QuotationService, workflow: QuotationWorkflow, **_: Any) -> int:
    q = quotations.get_quotation(args.id)
    if args.download:
        print(workflow.download_pdf(q, args.out))
    else:
        print(workflow.generate_pdf(q).file_path)
    return 0


# ---------- Parser ---------- #

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="proforma", description="Quotation (proforma) management")
    parser.add_argument("--api-url", help="override PROFORMA_API_URL")
    parser.add_argument("--log-level", help="override LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("login", help="log in and store the session")
    p.add_argument("email")
    p.add_argument("--password")
    p.set_defaults(func=cmd_login)

    sub.add_parser("logout", help="forget the stored session").set_defaults(func=cmd_logout)
    sub.add_parser("whoami", help="show the logged-in user").set_defaults(func=cmd_whoami)

    p = sub.add_parser("price", help="price an item list offline (JSON list or {items: [...]})")
    p.add_argument("file")
    p.set_defaults(func=cmd_price)

    qp = sub.add_parser("quotations", help="quotation commands")
    qsub = qp.add_subparsers(dest="action", required=True)

    p = qsub.add_parser("list")
    p.add_argument("--open", action="store_true", help="hide accepted, rejected and cancelled quotations")
    p.set_defaults(func=cmd_list)

    p = qsub.add_parser("show")
    p.add_argument("id")
    p.set_defaults(func=cmd_show)

    p = qsub.add_parser("create")
    p.add_argument("file")
    p.set_defaults(func=cmd_create)

    p = qsub.add_parser("accept")
    p.add_argument("id")
    p.set_defaults(func=cmd_accept)

    p = qsub.add_parser("status")
    p.add_argument("id")
    p.add_argument("status")
    p.set_defaults(func=cmd_status)

    p = qsub.add_parser("send")
    p.add_argument("id")
    p.add_argument("--to", dest="to")
    p.add_argument("--subject")
    p.add_argument("--body")
    p.set_defaults(func=cmd_send)

    p = qsub.add_parser("pdf")
    p.add_argument("id")
    p.add_argument("--download", action="store_true")
    p.add_argument("--out")
    p.set_defaults(func=cmd_pdf)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    log.debug("Command: %s %s", args.command, getattr(args, "action", "") or "")

    api = ApiClient(base_url=args.api_url)
    auth = AuthService(api)
    auth.restore()
    quotations = QuotationService(api)
    workflow = QuotationWorkflow(quotations)

    try:
        return args.func(args, auth=auth, quotations=quotations, workflow=workflow)
    except ValidationError as e:
        print(f"Invalid input:\n{e}", file=sys.stderr)
    except (ApiError, TransitionError) as e:
        print(f"Error: {e}", file=sys.stderr)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())

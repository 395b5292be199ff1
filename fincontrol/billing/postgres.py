"""PostgreSQL-backed invoice ledger (psycopg 3)."""

from __future__ import annotations

from contextlib import contextmanager
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Iterator

from fincontrol.billing.ledger import BaseLedger, new_invoice
from fincontrol.config import PostgresConfig
from fincontrol.exceptions import EntityNotFoundError, ReferentialIntegrityError
from fincontrol.logging import get_logger
from fincontrol.models.card import CreditCard, Invoice, Purchase
from fincontrol.models.enums import InvoiceStatus

if TYPE_CHECKING:
    import psycopg

logger = get_logger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS credit_cards (
    card_id       TEXT PRIMARY KEY,
    name          TEXT NOT NULL,
    closing_day   SMALLINT NOT NULL CHECK (closing_day BETWEEN 1 AND 31),
    due_day       SMALLINT NOT NULL CHECK (due_day BETWEEN 1 AND 31),
    credit_limit  NUMERIC(18, 2) NOT NULL,
    is_active     BOOLEAN NOT NULL DEFAULT TRUE
);

CREATE TABLE IF NOT EXISTS invoices (
    invoice_id    TEXT PRIMARY KEY,
    card_id       TEXT NOT NULL REFERENCES credit_cards (card_id) ON DELETE CASCADE,
    month         SMALLINT NOT NULL CHECK (month BETWEEN 1 AND 12),
    year          INTEGER NOT NULL,
    closing_date  DATE NOT NULL,
    due_date      DATE NOT NULL,
    status        TEXT NOT NULL DEFAULT 'open',
    total         NUMERIC(28, 10) NOT NULL DEFAULT 0,
    paid_amount   NUMERIC(28, 10) NOT NULL DEFAULT 0,
    created_at    TIMESTAMP NOT NULL DEFAULT now(),
    UNIQUE (card_id, month, year)
);

CREATE TABLE IF NOT EXISTS purchases (
    purchase_id          TEXT PRIMARY KEY,
    invoice_id           TEXT NOT NULL REFERENCES invoices (invoice_id) ON DELETE CASCADE,
    description          TEXT NOT NULL,
    value                NUMERIC(28, 10) NOT NULL,
    total_value          NUMERIC(18, 2) NOT NULL,
    category             TEXT NOT NULL,
    date                 DATE NOT NULL,
    installments         INTEGER NOT NULL DEFAULT 1,
    current_installment  INTEGER NOT NULL DEFAULT 1,
    parent_purchase_id   TEXT,
    is_recurring         BOOLEAN NOT NULL DEFAULT FALSE,
    notes                TEXT,
    created_at           TIMESTAMP NOT NULL DEFAULT now()
);

CREATE INDEX IF NOT EXISTS purchases_parent_idx ON purchases (parent_purchase_id);
"""


class PostgresLedger(BaseLedger):
    """Invoice ledger over a psycopg connection.

    Uniqueness of (card_id, month, year) is enforced by the table constraint,
    and totals only change through single ``UPDATE ... SET total = total + x``
    statements, so concurrent writers never lose increments.

    A connection passed in directly must be in autocommit mode, otherwise
    ``transaction()`` blocks only open savepoints and nothing is committed.
    """

    CARD_COLUMNS = ["card_id", "name", "closing_day", "due_day", "credit_limit", "is_active"]
    INVOICE_COLUMNS = [
        "invoice_id", "card_id", "month", "year", "closing_date", "due_date",
        "status", "total", "paid_amount", "created_at",
    ]
    PURCHASE_COLUMNS = [
        "purchase_id", "invoice_id", "description", "value", "total_value", "category",
        "date", "installments", "current_installment", "parent_purchase_id",
        "is_recurring", "notes", "created_at",
    ]

    def __init__(self, conn: psycopg.Connection) -> None:
        self._conn = conn

    @classmethod
    def connect(cls, config: PostgresConfig | None = None) -> PostgresLedger:
        """Open a connection and wrap it in a ledger.

        The connection runs in autocommit mode: single statements commit on
        their own and every ``transaction()`` block is an outermost
        transaction that commits on exit.
        """
        import psycopg

        config = config or PostgresConfig()
        logger.info("Connecting to PostgreSQL at %s:%d/%s", config.host, config.port, config.database)
        return cls(psycopg.connect(config.connection_string, autocommit=True))

    def create_schema(self) -> None:
        """Create tables if they do not exist."""
        with self._conn.transaction():
            self._conn.execute(SCHEMA)

    def close(self) -> None:
        self._conn.close()

    # Cards
    def add_card(self, card: CreditCard) -> None:
        self._execute(
            f"INSERT INTO credit_cards ({', '.join(self.CARD_COLUMNS)}) "
            "VALUES (%s, %s, %s, %s, %s, %s)",
            (card.card_id, card.name, card.closing_day, card.due_day, card.credit_limit, card.is_active),
        )

    def get_card(self, card_id: str, lock: bool = False) -> CreditCard:
        sql = f"SELECT {', '.join(self.CARD_COLUMNS)} FROM credit_cards WHERE card_id = %s"
        if lock:
            sql += " FOR UPDATE"
        row = self._fetchone(sql, (card_id,))
        if row is None:
            raise EntityNotFoundError(f"Credit card {card_id} not found")
        return CreditCard(**dict(zip(self.CARD_COLUMNS, row)))

    # Invoices
    def get_or_create_invoice(self, card_id: str, month: int, year: int) -> Invoice:
        invoice = self._select_invoice("card_id = %s AND month = %s AND year = %s", (card_id, month, year))
        if invoice is not None:
            return invoice

        try:
            card = self.get_card(card_id)
        except EntityNotFoundError as e:
            raise ReferentialIntegrityError(str(e)) from e

        fresh = new_invoice(card, month, year)
        self._execute(
            f"INSERT INTO invoices ({', '.join(self.INVOICE_COLUMNS)}) "
            "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s) "
            "ON CONFLICT (card_id, month, year) DO NOTHING",
            self._invoice_params(fresh),
        )
        # A concurrent writer may have won the insert; read back whichever row exists
        invoice = self._select_invoice("card_id = %s AND month = %s AND year = %s", (card_id, month, year))
        if invoice is None:
            raise EntityNotFoundError(f"Invoice {card_id} {month:02d}/{year} could not be created")
        return invoice

    def get_invoice(self, invoice_id: str) -> Invoice:
        invoice = self._select_invoice("invoice_id = %s", (invoice_id,))
        if invoice is None:
            raise EntityNotFoundError(f"Invoice {invoice_id} not found")
        return invoice

    def increment_total(self, invoice_id: str, amount: Decimal) -> Decimal:
        row = self._fetchone(
            "UPDATE invoices SET total = total + %s WHERE invoice_id = %s RETURNING total",
            (amount, invoice_id),
        )
        if row is None:
            raise EntityNotFoundError(f"Invoice {invoice_id} not found")
        return Decimal(row[0])

    def card_invoices(self, card_id: str) -> list[Invoice]:
        rows = self._fetchall(
            f"SELECT {', '.join(self.INVOICE_COLUMNS)} FROM invoices "
            "WHERE card_id = %s ORDER BY year, month",
            (card_id,),
        )
        return [self._row_to_invoice(row) for row in rows]

    def used_limit(self, card_id: str) -> Decimal:
        row = self._fetchone(
            "SELECT COALESCE(SUM(total - paid_amount), 0) FROM invoices "
            "WHERE card_id = %s AND status <> %s",
            (card_id, InvoiceStatus.PAID.value),
        )
        return Decimal(row[0]) if row else Decimal("0")

    def update_invoice(self, invoice_id: str, status: InvoiceStatus, paid_amount: Decimal) -> Invoice:
        row = self._fetchone(
            "UPDATE invoices SET status = %s, paid_amount = %s WHERE invoice_id = %s "
            f"RETURNING {', '.join(self.INVOICE_COLUMNS)}",
            (status.value, paid_amount, invoice_id),
        )
        if row is None:
            raise EntityNotFoundError(f"Invoice {invoice_id} not found")
        return self._row_to_invoice(row)

    # Purchases
    def add_purchase(self, purchase: Purchase) -> None:
        placeholders = ", ".join(["%s"] * len(self.PURCHASE_COLUMNS))
        columns = ", ".join(self.PURCHASE_COLUMNS)
        if purchase.created_at is None:
            # Let the column default fill created_at
            columns = ", ".join(self.PURCHASE_COLUMNS[:-1])
            placeholders = ", ".join(["%s"] * (len(self.PURCHASE_COLUMNS) - 1))
            params = tuple(getattr(purchase, c) for c in self.PURCHASE_COLUMNS[:-1])
        else:
            params = tuple(getattr(purchase, c) for c in self.PURCHASE_COLUMNS)
        self._execute(f"INSERT INTO purchases ({columns}) VALUES ({placeholders})", params)

    def get_purchase(self, purchase_id: str) -> Purchase:
        row = self._fetchone(
            f"SELECT {', '.join(self.PURCHASE_COLUMNS)} FROM purchases WHERE purchase_id = %s",
            (purchase_id,),
        )
        if row is None:
            raise EntityNotFoundError(f"Purchase {purchase_id} not found")
        return self._row_to_purchase(row)

    def invoice_purchases(self, invoice_id: str) -> list[Purchase]:
        rows = self._fetchall(
            f"SELECT {', '.join(self.PURCHASE_COLUMNS)} FROM purchases "
            "WHERE invoice_id = %s ORDER BY date, current_installment",
            (invoice_id,),
        )
        return [self._row_to_purchase(row) for row in rows]

    def series_purchases(self, parent_purchase_id: str) -> list[Purchase]:
        rows = self._fetchall(
            f"SELECT {', '.join(self.PURCHASE_COLUMNS)} FROM purchases "
            "WHERE parent_purchase_id = %s ORDER BY current_installment",
            (parent_purchase_id,),
        )
        return [self._row_to_purchase(row) for row in rows]

    def delete_purchase(self, purchase_id: str) -> None:
        self._execute("DELETE FROM purchases WHERE purchase_id = %s", (purchase_id,))

    @contextmanager
    def transaction(self) -> Iterator[PostgresLedger]:
        with self._conn.transaction():
            yield self

    # Helpers
    def _execute(self, sql: str, params: tuple[Any, ...]) -> None:
        with self._conn.cursor() as cur:
            cur.execute(sql, params)

    def _fetchone(self, sql: str, params: tuple[Any, ...]) -> tuple | None:
        with self._conn.cursor() as cur:
            cur.execute(sql, params)
            return cur.fetchone()

    def _fetchall(self, sql: str, params: tuple[Any, ...]) -> list[tuple]:
        with self._conn.cursor() as cur:
            cur.execute(sql, params)
            return cur.fetchall()

    def _select_invoice(self, where: str, params: tuple[Any, ...]) -> Invoice | None:
        row = self._fetchone(
            f"SELECT {', '.join(self.INVOICE_COLUMNS)} FROM invoices WHERE {where}",  # noqa: S608
            params,
        )
        return self._row_to_invoice(row) if row else None

    def _invoice_params(self, invoice: Invoice) -> tuple[Any, ...]:
        values = [getattr(invoice, c) for c in self.INVOICE_COLUMNS]
        values[self.INVOICE_COLUMNS.index("status")] = invoice.status.value
        return tuple(values)

    def _row_to_invoice(self, row: tuple) -> Invoice:
        data = dict(zip(self.INVOICE_COLUMNS, row))
        data["status"] = InvoiceStatus(data["status"])
        data["total"] = Decimal(data["total"])
        data["paid_amount"] = Decimal(data["paid_amount"])
        return Invoice(**data)

    def _row_to_purchase(self, row: tuple) -> Purchase:
        return Purchase(**dict(zip(self.PURCHASE_COLUMNS, row)))

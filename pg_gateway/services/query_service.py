"""Payment history queries with cursor pagination and summary statistics"""

from pg_gateway.domain.models import PaymentPage, QueryFilter, QueryResult
from pg_gateway.domain.pagination import decode_cursor, encode_cursor
from pg_gateway.domain.ports import PaymentStore


class PaymentQueryService:
    """
    Page through the payment ledger newest first.

    Flow:
    1. Decode the client cursor (malformed -> start from the beginning)
    2. Fetch limit + 1 rows after the cursor; the extra row only signals has_next
    3. Aggregate count and totals over the whole filter, ignoring the window
    4. Encode the next cursor from the last returned row
    """

    def __init__(self, payments: PaymentStore):
        self.payments = payments

    def query(self, query_filter: QueryFilter) -> QueryResult:
        if query_filter.limit < 1:
            raise ValueError(f"limit must be at least 1, got {query_filter.limit}")

        cursor = decode_cursor(query_filter.cursor)
        payment_filter = query_filter.to_payment_filter()

        page = self._fetch_page(payment_filter, cursor, query_filter.limit)
        summary = self.payments.summary(payment_filter)

        next_cursor = (
            encode_cursor(page.next_cursor_created_at, page.next_cursor_id) if page.has_next else None
        )
        return QueryResult(
            items=page.items,
            summary=summary,
            next_cursor=next_cursor,
            has_next=page.has_next,
        )

    def _fetch_page(self, payment_filter, cursor, limit: int) -> PaymentPage:
        rows = self.payments.page_by(payment_filter, cursor, limit + 1)
        has_next = len(rows) > limit
        items = rows[:limit]
        last = items[-1] if items else None
        return PaymentPage(
            items=items,
            has_next=has_next,
            next_cursor_created_at=last.created_at if last else None,
            next_cursor_id=last.id if last else None,
        )

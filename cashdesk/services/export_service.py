"""CSV export of transaction lists."""

import io

import pandas as pd
from fastapi.responses import StreamingResponse

from cashdesk.core.models import Transaction

EXPORT_COLUMNS = ["date", "type", "category", "description", "amount", "shift_id"]


def transactions_to_csv(transactions: list[Transaction]) -> str:
    """Render transactions (category already resolved) as CSV text."""
    records = [
        {
            "date": t.date.isoformat(),
            "type": t.type.value,
            "category": t.category or "",
            "description": t.description,
            "amount": str(t.amount),
            "shift_id": t.shift_id or "",
        }
        for t in transactions
    ]
    data_frame = pd.DataFrame(records, columns=EXPORT_COLUMNS)
    return data_frame.to_csv(index=False)


def stream_csv(content: str, filename: str) -> StreamingResponse:
    """Stream CSV text as a FastAPI StreamingResponse for download."""
    return StreamingResponse(
        io.BytesIO(content.encode("utf-8")),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )

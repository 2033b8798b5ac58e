from fastapi import APIRouter, Depends, HTTPException, Request
from typing import Any, Dict
from sqlmodel import Session
import logging
from starlette.responses import HTMLResponse

from app.api.deps import require_role
from app.db.session import get_db
from app.models.account import Role, User
from app.services import stats
from app.services.accounts import ShopService

logger = logging.getLogger(__name__)
router = APIRouter()


def _render_summary_html(summary: Dict[str, Any]) -> str:
    rows = ''.join(f"<tr><td>{k}</td><td>{v}</td></tr>" for k, v in summary["by_status"].items())
    return f"""
<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <title>Shop Dashboard</title>
  <style>
    body {{ font-family: Inter, system-ui, -apple-system, 'Segoe UI', Roboto, 'Helvetica Neue', Arial; background:#f3f4f6; padding:24px; }}
    .container {{ max-width:1100px; margin:0 auto; }}
    .cards {{ display:flex; gap:16px; margin-bottom:20px; }}
    .card {{ background:white;padding:20px;border-radius:8px; box-shadow:0 1px 3px rgba(0,0,0,0.06); flex:1 }}
    .title {{ color:#6b7280; font-size:13px }}
    .value {{ font-size:28px; font-weight:700; margin-top:6px }}
    table {{ width:100%; border-collapse:collapse; background:white; border-radius:8px; overflow:hidden }}
    th, td {{ padding:12px; text-align:left; border-bottom:1px solid #eef2f7 }}
    thead {{ background:#f9fafb }}
  </style>
</head>
<body>
  <div class="container">
    <h1>Shop Dashboard</h1>
    <div class="cards">
      <div class="card"><div class="title">Total Orders</div><div class="value">{summary["total_orders"]}</div></div>
      <div class="card"><div class="title">Today</div><div class="value">{summary["today"]}</div></div>
      <div class="card"><div class="title">Urgent Open</div><div class="value">{summary["urgent_open"]}</div></div>
    </div>
    <h2>By Status</h2>
    <table>
      <thead><tr><th>Status</th><th>Orders</th></tr></thead>
      <tbody>{rows}</tbody>
    </table>
  </div>
</body>
</html>
"""


@router.get("/summary")
def summary(
    request: Request,
    user: User = Depends(require_role(Role.SHOP_OWNER.value)),
    session: Session = Depends(get_db),
) -> Any:
    shops = ShopService(session).owned_by(user)
    if not shops:
        raise HTTPException(status_code=404, detail="Shop not found")
    try:
        data = stats.shop_summary(session, [s.id for s in shops])
    except Exception as e:
        logger.exception("Failed to compute summary: %s", e)
        raise HTTPException(status_code=500, detail="Failed to compute dashboard summary")

    accept = request.headers.get('accept', '')
    if 'text/html' in accept:
        return HTMLResponse(content=_render_summary_html(data))
    return data

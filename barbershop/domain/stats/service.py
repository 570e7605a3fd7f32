"""Stats service - Management dashboard figures"""

from datetime import datetime, time

from sqlalchemy.orm import Session

from ... import timeutils
from ...models import ROLE_BARBER, ROLE_CLIENT
from ..appointments.service import appointment_to_response
from .repository import StatsRepository


def month_bounds(now: datetime) -> tuple[datetime, datetime]:
    start = datetime.combine(now.date().replace(day=1), time.min)
    if start.month == 12:
        return start, start.replace(year=start.year + 1, month=1)
    return start, start.replace(month=start.month + 1)


class StatsService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = StatsRepository()

    def get_dashboard(self) -> dict:
        now = timeutils.shop_now()
        start_day, end_day = timeutils.day_bounds(now.date())
        start_month, end_month = month_bounds(now)

        revenue_month, closed_count = self.repo.closed_revenue(self.db, start_month, end_month)
        revenue_today, _ = self.repo.closed_revenue(self.db, start_day, end_day)
        ticket_medio = revenue_month / closed_count if closed_count else 0

        return {
            "kpis": {
                "revenueToday": revenue_today,
                "revenueMonth": revenue_month,
                "ticketMedio": ticket_medio,
                "todayAppointments": self.repo.count_upcoming_appointments(self.db, start_day),
                "totalClients": self.repo.count_users(self.db, ROLE_CLIENT),
                "totalBarbers": self.repo.count_users(self.db, ROLE_BARBER),
            },
            "recentOrders": [
                {
                    "id": o.id,
                    "client_name": o.client.name if o.client else None,
                    "total_amount": o.total_amount or 0,
                    "tip_amount": o.tip_amount or 0,
                    "payment_method": o.payment_method,
                    "closed_at": o.closed_at,
                }
                for o in self.repo.recent_closed_orders(self.db)
            ],
            "pendingAppointments": [
                appointment_to_response(a)
                for a in self.repo.next_pending_appointments(self.db, start_day)
            ],
            "barberPerformance": [
                {
                    "barberId": row.id,
                    "name": row.name,
                    "revenue": float(row.revenue or 0),
                    "count": row.order_count,
                }
                for row in self.repo.barber_performance(self.db, start_month)
            ],
            "breakdown": [
                {"category": row.category, "revenue": float(row.revenue or 0)}
                for row in self.repo.product_breakdown(self.db, start_month)
            ],
        }

import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Optional

from django.contrib.auth import get_user_model
from django.db import DatabaseError, models, transaction
from django.db.models import Count, OuterRef, Q, Subquery
from django.db.models.functions import Coalesce
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from common.exceptions import Conflict
from messaging.models import Message
from relations.models import Follow
from reports.models import Report, ReportStatus
from users.models import UserStatus

log = logging.getLogger(__name__)
User = get_user_model()

REVIEW_STATUSES = (ReportStatus.REVIEWED, ReportStatus.RESOLVED, ReportStatus.DISMISSED)
RECENT_ACTIVITY_LIMIT = 10
DAILY_STATS_DAYS = 7


class CascadeAction(models.TextChoices):
    DELETE_MESSAGE = "delete_message", "Delete message"
    BLOCK_USER = "block_user", "Block user"
    BAN_USER = "ban_user", "Ban user"


@dataclass(frozen=True)
class ReviewOutcome:
    report: Report
    action: Optional[str]
    applied: bool


# ---- report review ----
def review_report(*, admin, report_id, status: str, admin_notes: str = "", action: Optional[str] = None) -> ReviewOutcome:
    """
    pending → reviewed | resolved | dismissed (재오픈 없음).

    상태 전이는 조건부 UPDATE 로 커밋한 뒤, 후속 조치(action)를 별도 트랜잭션에서 best-effort 로 실행한다.
    조치 실패는 로그만 남기고 검토 결과는 유지된다.
    """
    if status not in REVIEW_STATUSES:
        raise ValidationError({"status": "Invalid status. Must be 'reviewed', 'resolved', or 'dismissed'"})
    if action and action not in CascadeAction.values:
        raise ValidationError({"action": f"Unknown action '{action}'"})

    with transaction.atomic():
        if not Report.objects.filter(id=report_id).exists():
            raise NotFound("Report not found")
        updated = Report.objects.filter(id=report_id, status=ReportStatus.PENDING).update(
            status=status,
            admin_notes=admin_notes or "",
            reviewed_by=admin,
            reviewed_at=timezone.now(),
        )
        if updated == 0:
            raise Conflict("Report already reviewed")

    report = Report.objects.get(id=report_id)
    applied = _apply_cascade(report, action) if action else False
    log.info("Admin %s reviewed report %s -> %s (action=%s applied=%s)", admin.id, report.id, status, action or "-", applied)

    # 조치 결과(메시지 삭제 등)를 반영한 최신 상태
    report = Report.objects.select_related("reporter", "reported_user", "reported_message", "reviewed_by").get(id=report_id)
    return ReviewOutcome(report=report, action=action or None, applied=applied)


def _apply_cascade(report: Report, action: str) -> bool:
    try:
        with transaction.atomic():
            if action == CascadeAction.DELETE_MESSAGE:
                if report.reported_message_id is None:
                    return False
                deleted, _ = Message.objects.filter(id=report.reported_message_id).delete()
                return deleted > 0

            # 익명 메시지 신고는 reported_user 가 없으므로 no-op
            if report.reported_user_id is None:
                return False
            forced = UserStatus.BLOCKED if action == CascadeAction.BLOCK_USER else UserStatus.BANNED
            return User.objects.filter(id=report.reported_user_id).update(status=forced) > 0
    except DatabaseError:
        log.exception("Cascade %s failed for report %s", action, report.id)
        return False


# ---- listings ----
def _count_of(model, field: str):
    sub = model.objects.filter(**{field: OuterRef("pk")}).order_by().values(field).annotate(n=Count("pk")).values("n")[:1]
    return Coalesce(Subquery(sub, output_field=models.IntegerField()), 0)


def list_reports(*, status: Optional[str] = ReportStatus.PENDING, type: Optional[str] = None):
    qs = Report.objects.select_related("reporter", "reported_user", "reported_message", "reviewed_by")
    if status in ReportStatus.values:
        qs = qs.filter(status=status)
    if type:
        qs = qs.filter(type=type)
    return qs.order_by("-created_at", "-id")


def list_users(*, status: Optional[str] = None, search: Optional[str] = None):
    qs = User.objects.all()
    if status in UserStatus.values:
        qs = qs.filter(status=status)
    if search:
        qs = qs.filter(
            Q(username__icontains=search) | Q(email__icontains=search) | Q(first_name__icontains=search) | Q(last_name__icontains=search)
        )
    return qs.annotate(
        messages_received=_count_of(Message, "recipient"),
        messages_sent=_count_of(Message, "sender"),
        followers_count=_count_of(Follow, "following"),
        following_count=_count_of(Follow, "follower"),
        reports_against=_count_of(Report, "reported_user"),
    ).order_by("-created_at", "-id")


def user_detail(user_id) -> dict:
    user = User.objects.filter(id=user_id).first()
    if user is None:
        raise NotFound("User not found")

    stats = {
        "messages_received": Message.objects.filter(recipient=user).count(),
        "messages_sent": Message.objects.filter(sender=user).count(),
        "followers_count": Follow.objects.filter(following=user).count(),
        "following_count": Follow.objects.filter(follower=user).count(),
        "reports_against": Report.objects.filter(reported_user=user).count(),
        "reports_made": Report.objects.filter(reporter=user).count(),
    }
    messages = (
        Message.objects.filter(Q(recipient=user) | Q(sender=user))
        .select_related("sender", "recipient")
        .order_by("-created_at", "-id")[:RECENT_ACTIVITY_LIMIT]
    )
    reports = (
        Report.objects.filter(Q(reported_user=user) | Q(reporter=user))
        .select_related("reporter", "reported_user", "reported_message", "reviewed_by")
        .order_by("-created_at", "-id")[:RECENT_ACTIVITY_LIMIT]
    )
    return {"user": user, "stats": stats, "recent_activity": {"messages": list(messages), "reports": list(reports)}}


def list_messages(*, search: Optional[str] = None):
    qs = Message.objects.select_related("sender", "recipient")
    if search:
        qs = qs.filter(content__icontains=search)
    return qs.order_by("-created_at", "-id")


# ---- dashboard ----
def dashboard_stats(now: Optional[datetime] = None) -> dict:
    now = now or timezone.now()
    day_ago = now - timedelta(days=1)
    week_ago = now - timedelta(days=7)

    users = User.objects.aggregate(
        total_users=Count("id"),
        active_users=Count("id", filter=Q(status=UserStatus.ACTIVE)),
        blocked_users=Count("id", filter=Q(status=UserStatus.BLOCKED)),
        banned_users=Count("id", filter=Q(status=UserStatus.BANNED)),
        new_users_today=Count("id", filter=Q(created_at__gte=day_ago)),
        new_users_this_week=Count("id", filter=Q(created_at__gte=week_ago)),
    )
    messages = Message.objects.aggregate(
        total_messages=Count("id"),
        messages_today=Count("id", filter=Q(created_at__gte=day_ago)),
        messages_this_week=Count("id", filter=Q(created_at__gte=week_ago)),
    )
    follows = Follow.objects.aggregate(
        total_follows=Count("id"),
        new_follows_today=Count("id", filter=Q(created_at__gte=day_ago)),
    )
    reports = Report.objects.aggregate(
        total_reports=Count("id"),
        pending_reports=Count("id", filter=Q(status=ReportStatus.PENDING)),
        reports_this_week=Count("id", filter=Q(created_at__gte=week_ago)),
    )

    return {
        "overview": {
            "total_users": users["total_users"],
            "active_users": users["active_users"],
            "blocked_users": users["blocked_users"],
            "banned_users": users["banned_users"],
            "total_messages": messages["total_messages"],
            "total_follows": follows["total_follows"],
            "total_reports": reports["total_reports"],
            "pending_reports": reports["pending_reports"],
        },
        "recent": {
            "new_users_today": users["new_users_today"],
            "new_users_this_week": users["new_users_this_week"],
            "messages_today": messages["messages_today"],
            "messages_this_week": messages["messages_this_week"],
            "new_follows_today": follows["new_follows_today"],
            "reports_this_week": reports["reports_this_week"],
        },
        "daily_stats": _daily_series(now),
    }


def _daily_series(now: datetime) -> list:
    """최근 7일, 오래된 날짜부터. 날짜 경계는 현재 타임존 기준 자정."""
    today = timezone.localdate(now)
    tz = timezone.get_current_timezone()
    series = []
    for offset in range(DAILY_STATS_DAYS - 1, -1, -1):
        day = today - timedelta(days=offset)
        start = timezone.make_aware(datetime.combine(day, time.min), tz)
        window = Q(created_at__gte=start, created_at__lt=start + timedelta(days=1))
        series.append(
            {
                "date": day.isoformat(),
                "users": User.objects.filter(window).count(),
                "messages": Message.objects.filter(window).count(),
                "follows": Follow.objects.filter(window).count(),
            }
        )
    return series

from rest_framework.routers import SimpleRouter

from .views import AdminMessageViewSet, AdminReportViewSet, AdminStatsViewSet, AdminUserViewSet

router = SimpleRouter(trailing_slash=False)
router.register("admin/stats", AdminStatsViewSet, basename="admin-stats")
router.register("admin/users", AdminUserViewSet, basename="admin-users")
router.register("admin/reports", AdminReportViewSet, basename="admin-reports")
router.register("admin/messages", AdminMessageViewSet, basename="admin-messages")

urlpatterns = router.urls

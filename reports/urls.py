from rest_framework.routers import SimpleRouter

from .views import MessageReportViewSet

router = SimpleRouter(trailing_slash=False)
router.register(r"messages", MessageReportViewSet, basename="message-reports")

urlpatterns = router.urls

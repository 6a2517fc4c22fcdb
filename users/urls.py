from rest_framework.routers import SimpleRouter

from .views import AuthViewSet, UserViewSet

router = SimpleRouter(trailing_slash=False)
router.register(r"auth", AuthViewSet, basename="auth")
router.register(r"users", UserViewSet, basename="users")

urlpatterns = router.urls

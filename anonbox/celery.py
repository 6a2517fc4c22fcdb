import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "anonbox.settings")

app = Celery("anonbox")
# CELERY_* 설정을 Django settings 에서 읽는다 (개발/테스트는 CELERY_TASK_ALWAYS_EAGER)
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()

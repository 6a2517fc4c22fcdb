import uuid

from django.conf import settings
from django.db import models
from django.db.models import F, Q


class Follow(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    follower = models.ForeignKey(settings.AUTH_USER_MODEL, related_name="following_edges", on_delete=models.CASCADE)
    following = models.ForeignKey(settings.AUTH_USER_MODEL, related_name="follower_edges", on_delete=models.CASCADE)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "follows"
        constraints = [
            models.UniqueConstraint(fields=["follower", "following"], name="uq_follows_pair"),
            models.CheckConstraint(condition=~Q(follower=F("following")), name="ck_follows_not_self"),
        ]
        indexes = [
            models.Index(fields=["follower", "-created_at"], name="idx_follows_follower"),
            models.Index(fields=["following", "-created_at"], name="idx_follows_following"),
        ]


class Block(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    blocker = models.ForeignKey(settings.AUTH_USER_MODEL, related_name="blocks_made", on_delete=models.CASCADE)
    blocked = models.ForeignKey(settings.AUTH_USER_MODEL, related_name="blocks_received", on_delete=models.CASCADE)
    reason = models.CharField(max_length=200, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "blocks"
        constraints = [
            models.UniqueConstraint(fields=["blocker", "blocked"], name="uq_blocks_pair"),
            models.CheckConstraint(condition=~Q(blocker=F("blocked")), name="ck_blocks_not_self"),
        ]
        indexes = [
            models.Index(fields=["blocker", "-created_at"], name="idx_blocks_blocker"),
            models.Index(fields=["blocked"], name="idx_blocks_blocked"),
        ]

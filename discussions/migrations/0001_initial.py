import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

import discussions.utils


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("contenttypes", "0002_remove_content_type_name"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="CommentThread",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("course_id", models.CharField(max_length=255)),
                ("body", models.TextField()),
                ("endorsed", models.BooleanField(default=False)),
                ("anonymous", models.BooleanField(default=False)),
                ("anonymous_to_peers", models.BooleanField(default=False)),
                ("group_id", models.PositiveIntegerField(null=True)),
                ("at_position_list", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("title", models.CharField(max_length=1024)),
                ("thread_type", models.CharField(choices=[("question", "Question"), ("discussion", "Discussion")], default="discussion", max_length=50)),
                ("context", models.CharField(choices=[("course", "Course"), ("standalone", "Standalone")], default="course", max_length=50)),
                ("last_activity_at", models.DateTimeField(blank=True, null=True)),
                ("commentable_id", models.CharField(blank=True, default=None, max_length=255, null=True)),
                ("comment_count", models.PositiveIntegerField(default=0)),
                ("author", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "indexes": [
                    models.Index(fields=["context"], name="disc_thread_context_idx"),
                    models.Index(fields=["author"], name="disc_thread_author_idx"),
                    models.Index(fields=["author", "course_id"], name="disc_thread_author_course_idx"),
                    models.Index(fields=["course_id", "commentable_id"], name="disc_thread_course_cmt_idx"),
                    models.Index(fields=["course_id", "anonymous", "anonymous_to_peers"], name="disc_thread_course_anon_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Comment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("course_id", models.CharField(max_length=255)),
                ("body", models.TextField()),
                ("endorsed", models.BooleanField(default=False)),
                ("anonymous", models.BooleanField(default=False)),
                ("anonymous_to_peers", models.BooleanField(default=False)),
                ("group_id", models.PositiveIntegerField(null=True)),
                ("at_position_list", models.JSONField(blank=True, default=list)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("endorsement", models.JSONField(default=dict)),
                ("depth", models.PositiveIntegerField(default=0)),
                ("author", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to=settings.AUTH_USER_MODEL)),
                ("comment_thread", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="discussions.commentthread")),
                ("parent", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, to="discussions.comment")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["author", "course_id"], name="disc_comment_author_course_idx"),
                    models.Index(fields=["comment_thread", "author", "created_at"], name="disc_comment_thread_author_idx"),
                    models.Index(fields=["comment_thread", "endorsed"], name="disc_comment_endorsed_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="AbuseFlagger",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("content_object_id", models.PositiveIntegerField()),
                ("flagged_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("content_type", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="contenttypes.contenttype")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "indexes": [
                    models.Index(fields=["content_type", "content_object_id"], name="disc_flag_content_idx"),
                ],
                "unique_together": {("user", "content_type", "content_object_id")},
            },
        ),
        migrations.CreateModel(
            name="ReadState",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("course_id", models.CharField(max_length=255)),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="read_states", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "indexes": [
                    models.Index(fields=["user", "course_id"], name="disc_readstate_user_course_idx"),
                ],
                "unique_together": {("course_id", "user")},
            },
        ),
        migrations.CreateModel(
            name="LastReadTime",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("timestamp", models.DateTimeField()),
                ("comment_thread", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="discussions.commentthread")),
                ("read_state", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="last_read_times", to="discussions.readstate")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["read_state", "timestamp"], name="disc_lastread_state_time_idx"),
                ],
                "unique_together": {("read_state", "comment_thread")},
            },
        ),
        migrations.CreateModel(
            name="UserVote",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("content_object_id", models.PositiveIntegerField()),
                ("vote", models.IntegerField(validators=[discussions.utils.validate_upvote_or_downvote])),
                ("content_type", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="contenttypes.contenttype")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "indexes": [
                    models.Index(fields=["content_type", "content_object_id"], name="disc_vote_content_idx"),
                ],
                "unique_together": {("user", "content_type", "content_object_id")},
            },
        ),
        migrations.CreateModel(
            name="Notification",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("notification_type", models.CharField(max_length=50)),
                ("info", models.JSONField(default=dict)),
                ("target_object_id", models.PositiveIntegerField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("actor", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="acted_notifications", to=settings.AUTH_USER_MODEL)),
                ("receivers", models.ManyToManyField(related_name="notifications", to=settings.AUTH_USER_MODEL)),
                ("target_content_type", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, to="contenttypes.contenttype")),
            ],
            options={
                "indexes": [
                    models.Index(fields=["target_content_type", "target_object_id"], name="disc_notif_target_idx"),
                ],
            },
        ),
    ]

"""Plugins used by the discovery tests. Each module registers itself on import."""

PRE_CHECK_MARKER = "tests.sample.pre_check"
POST_CHECK_MARKER = "tests.sample.post_check"
POST_ACTIVITY_MARKER = "tests.sample.post_activity"

AUDIT_LOG: list[str] = []

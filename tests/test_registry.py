# tests/test_registry.py
from jstrack.core.models import Application, Failure, document_to_dict
from jstrack.core.progress import calculate_article_progress
from jstrack.core.registry import ApplicationRegistry


def test_apply_links_section_and_completes_article(closures_doc):
    registry = ApplicationRegistry(closures_doc, github_user="me")

    result = registry.apply("closures", "demo", "abc123", "basic")

    closures = closures_doc["closures"]
    assert result.success
    assert result.section.id == "basic"
    assert len(closures.sections[0].applications) == 1
    assert calculate_article_progress(closures) == 100
    assert closures.progress == 100
    assert result.progress == 100

    app = closures.sections[0].applications[0]
    assert app.commit_url == "https://github.com/me/demo/commit/abc123"
    assert app.date.endswith("Z")


def test_apply_twice_is_rejected_as_duplicate(closures_doc):
    registry = ApplicationRegistry(closures_doc)

    first = registry.apply("closures", "demo", "abc123", "basic")
    second = registry.apply("closures", "demo", "abc123", "basic")

    assert first.success
    assert not second.success
    assert second.error == Failure.DUPLICATE_APPLICATION
    assert not second.is_not_found
    assert len(closures_doc["closures"].sections[0].applications) == 1


def test_same_commit_in_another_project_is_allowed(closures_doc):
    registry = ApplicationRegistry(closures_doc)

    assert registry.apply("closures", "demo", "abc123", "basic").success
    assert registry.apply("closures", "other", "abc123", "basic").success
    assert len(closures_doc["closures"].sections[0].applications) == 2


def test_apply_missing_section_leaves_document_unchanged(closures_doc):
    before = document_to_dict(closures_doc)

    result = ApplicationRegistry(closures_doc).apply("closures", "demo", "abc123", "missing")

    assert not result.success
    assert result.error == Failure.SECTION_NOT_FOUND
    assert result.is_not_found
    assert document_to_dict(closures_doc) == before


def test_apply_requires_a_section(closures_doc):
    result = ApplicationRegistry(closures_doc).apply("closures", "demo", "abc123", None)
    assert result.error == Failure.SECTION_NOT_FOUND


def test_apply_missing_article(closures_doc):
    result = ApplicationRegistry(closures_doc).apply("nope", "demo", "abc123", "basic")
    assert result.error == Failure.ARTICLE_NOT_FOUND
    assert result.article is None


def test_commit_url_uses_explicit_owner(closures_doc):
    result = ApplicationRegistry(closures_doc, "me").apply("closures", "acme/tool", "f00", "basic")
    assert result.application.commit_url == "https://github.com/acme/tool/commit/f00"


def test_is_already_linked(catalogue):
    registry = ApplicationRegistry(catalogue)

    assert registry.is_already_linked("events", "demo", "abc1234", "keydown")
    assert not registry.is_already_linked("events", "demo", "abc1234", "mouse")
    assert registry.is_already_linked("events", "demo", "abc1234")
    assert not registry.is_already_linked("events", "shop", "abc1234")
    assert not registry.is_already_linked("nope", "demo", "abc1234")


def test_is_already_linked_checks_legacy_article_applications(catalogue):
    catalogue["timers"].applications.append(Application(project="demo", commit="t1"))
    assert ApplicationRegistry(catalogue).is_already_linked("timers", "demo", "t1")


def test_find_usages_of_commit(catalogue):
    registry = ApplicationRegistry(catalogue)
    registry.apply("closures", "shop", "abc1234", "basic")

    everywhere = registry.find_usages_of_commit("abc1234")
    in_demo = registry.find_usages_of_commit("abc1234", "demo")

    assert [(u.article_id, u.section_id, u.project) for u in everywhere] == [
        ("events", "keydown", "demo"),
        ("closures", "basic", "shop"),
    ]
    assert [u.article_id for u in in_demo] == ["events"]
    assert registry.find_usages_of_commit("unknown") == []


def test_list_all_applications_newest_first(catalogue):
    usages = ApplicationRegistry(catalogue).list_all_applications()
    assert [u.commit for u in usages] == ["def5678", "abc1234"]
    assert usages[0].section_title == "Validation"


def test_find_by_criteria_narrows_by_article_and_section(catalogue):
    registry = ApplicationRegistry(catalogue)
    registry.apply("forms", "demo", "abc1234", "submit")

    assert len(registry.find_by_criteria("abc1234")) == 2
    assert [u.article_id for u in registry.find_by_criteria("abc1234", article="forms")] == ["forms"]
    assert registry.find_by_criteria("abc1234", article="forms", section="validation") == []


def test_unapply_removes_every_project_with_that_commit(closures_doc):
    registry = ApplicationRegistry(closures_doc)
    registry.apply("closures", "demo", "abc123", "basic")
    registry.apply("closures", "other", "abc123", "basic")
    registry.apply("closures", "demo", "keep", "basic")

    assert registry.unapply("closures", "basic", "abc123")
    assert [a.commit for a in closures_doc["closures"].sections[0].applications] == ["keep"]
    assert not registry.unapply("closures", "basic", "abc123")
    assert not registry.unapply("closures", "missing", "keep")


def test_unapply_does_not_touch_progress_until_batch_ends(catalogue):
    registry = ApplicationRegistry(catalogue)

    assert registry.unapply("events", "keydown", "abc1234")
    assert catalogue["events"].progress == 50
    assert calculate_article_progress(catalogue["events"]) == 0


def test_unapply_many_recomputes_affected_articles(catalogue):
    registry = ApplicationRegistry(catalogue)

    removed, affected = registry.unapply_many(registry.list_all_applications())

    assert removed == 2
    assert affected == {"events", "forms"}
    assert catalogue["events"].progress == 0
    assert catalogue["forms"].progress == 0
    assert registry.list_all_applications() == []


def test_articles_by_project(catalogue):
    entries = ApplicationRegistry(catalogue).articles_by_project("demo")

    assert [e.article.id for e in entries] == ["events"]
    assert entries[0].application_count == 1
    assert ApplicationRegistry(catalogue).articles_by_project("ghost") == []


def test_statistics(catalogue):
    stats = ApplicationRegistry(catalogue).statistics()

    assert stats.total == 5
    assert stats.completed == 0
    assert stats.in_progress == 2
    assert stats.not_started == 3
    assert stats.total_applications == 2
    assert stats.overall_progress == 0


def test_unapply_reports_how_many_entries_it_removed(closures_doc):
    registry = ApplicationRegistry(closures_doc)
    registry.apply("closures", "demo", "abc123", "basic")
    registry.apply("closures", "other", "abc123", "basic")

    assert registry.unapply("closures", "basic", "abc123") == 2
    assert registry.unapply("closures", "basic", "abc123") == 0


def test_unapply_many_counts_shared_commit_across_projects(closures_doc):
    registry = ApplicationRegistry(closures_doc)
    registry.apply("closures", "demo", "abc123", "basic")
    registry.apply("closures", "other", "abc123", "basic")

    removed, affected = registry.unapply_many(registry.list_all_applications())

    assert removed == 2
    assert affected == {"closures"}
    assert closures_doc["closures"].sections[0].applications == []
    assert closures_doc["closures"].progress == 0

# =============================================================================
# tests/test_progress.py - Enrollment Progress Engine Tests
# =============================================================================

from datetime import datetime

from intellecta.enrollments.progress import (
    EnrollmentStatus, build_topics_progress, new_enrollment, find_lesson_progress,
    get_or_create_lesson_progress, record_lesson_progress, recalculate_topic,
    calculate_progress, refresh_enrollment, current_topic,
)

T0 = datetime(2026, 3, 1, 9, 0, 0)
T1 = datetime(2026, 3, 2, 9, 0, 0)


def make_enrollment(lessons_per_topic=(2, 2)):
    topics = [{"topic_id": f"TOPIC_{i}"} for i in range(len(lessons_per_topic))]
    lessons = {
        f"TOPIC_{i}": [{"lesson_id": f"LESSON_{i}_{j}"} for j in range(count)]
        for i, count in enumerate(lessons_per_topic)
    }
    return new_enrollment("USER_1", "COURSE_1", build_topics_progress(topics, lessons), now=T0)


def complete(enrollment, topic_index, lesson_index, time_spent=0, now=T0):
    topic = enrollment["topics_progress"][topic_index]
    lesson = topic["lessons_progress"][lesson_index]
    record_lesson_progress(lesson, True, time_spent, now=now)
    refresh_enrollment(enrollment, now=now)


class TestSkeleton:
    """Enrollment skeleton construction"""

    def test_new_enrollment_starts_clean(self):
        enrollment = make_enrollment()
        assert enrollment["enrollment_id"].startswith("ENROLL_")
        assert enrollment["status"] == EnrollmentStatus.ENROLLED.value
        assert enrollment["progress_percentage"] == 0
        assert enrollment["started_at"] is None
        assert len(enrollment["topics_progress"]) == 2
        assert all(
            not lesson["is_completed"]
            for topic in enrollment["topics_progress"]
            for lesson in topic["lessons_progress"]
        )

    def test_lessons_added_later_get_an_entry(self):
        enrollment = make_enrollment()
        topic = enrollment["topics_progress"][0]
        lesson = get_or_create_lesson_progress(topic, "LESSON_NEW")
        assert lesson["lesson_id"] == "LESSON_NEW"
        assert len(topic["lessons_progress"]) == 3
        assert get_or_create_lesson_progress(topic, "LESSON_NEW") is lesson

    def test_find_lesson_progress_missing(self):
        assert find_lesson_progress(make_enrollment(), "NOPE") is None


class TestPercentages:
    """Topic and course percentages"""

    def test_topic_percentage_rounds_half_up(self):
        topic = {"topic_id": "T", "lessons_progress": [
            {"lesson_id": "a", "is_completed": True},
            {"lesson_id": "b", "is_completed": False},
            {"lesson_id": "c", "is_completed": False},
        ]}
        assert recalculate_topic(topic) == 33
        topic["lessons_progress"][1]["is_completed"] = True
        assert recalculate_topic(topic) == 67

    def test_empty_topic_is_zero(self):
        assert recalculate_topic({"topic_id": "T", "lessons_progress": []}) == 0

    def test_course_progress_is_mean_of_topics(self):
        enrollment = {"topics_progress": [
            {"progress_percentage": 50},
            {"progress_percentage": 75},
        ]}
        assert calculate_progress(enrollment) == 63

    def test_course_progress_without_topics(self):
        assert calculate_progress({"topics_progress": []}) == 0


class TestStatusTransitions:
    """enrolled -> in_progress -> completed"""

    def test_first_lesson_starts_course(self):
        enrollment = make_enrollment()
        complete(enrollment, 0, 0, time_spent=120)
        assert enrollment["progress_percentage"] == 25
        assert enrollment["status"] == EnrollmentStatus.IN_PROGRESS.value
        assert enrollment["started_at"] == T0
        assert enrollment["total_time_spent"] == 120

    def test_started_at_is_stamped_once(self):
        enrollment = make_enrollment()
        complete(enrollment, 0, 0, now=T0)
        complete(enrollment, 0, 1, now=T1)
        assert enrollment["started_at"] == T0

    def test_all_lessons_complete_course(self):
        enrollment = make_enrollment()
        for topic_index in range(2):
            for lesson_index in range(2):
                complete(enrollment, topic_index, lesson_index)
        assert enrollment["progress_percentage"] == 100
        assert enrollment["status"] == EnrollmentStatus.COMPLETED.value
        assert enrollment["is_completed"] is True
        assert enrollment["completed_at"] == T0
        assert all(topic["is_completed"] for topic in enrollment["topics_progress"])

    def test_topic_completion_stamped_once(self):
        enrollment = make_enrollment()
        complete(enrollment, 0, 0, now=T0)
        complete(enrollment, 0, 1, now=T0)
        refresh_enrollment(enrollment, now=T1)
        assert enrollment["topics_progress"][0]["completed_at"] == T0

    def test_uncompleting_lesson_reopens_topic(self):
        enrollment = make_enrollment()
        complete(enrollment, 0, 0)
        complete(enrollment, 0, 1)
        lesson = enrollment["topics_progress"][0]["lessons_progress"][1]
        record_lesson_progress(lesson, False)
        refresh_enrollment(enrollment)
        assert enrollment["topics_progress"][0]["is_completed"] is False
        assert enrollment["progress_percentage"] == 25

    def test_time_accumulates(self):
        enrollment = make_enrollment()
        lesson = enrollment["topics_progress"][0]["lessons_progress"][0]
        record_lesson_progress(lesson, False, 30)
        record_lesson_progress(lesson, False, 45)
        refresh_enrollment(enrollment)
        assert lesson["time_spent"] == 75
        assert enrollment["total_time_spent"] == 75
        assert enrollment["status"] == EnrollmentStatus.ENROLLED.value


class TestCurrentTopic:
    """Resume point"""

    def test_defaults_to_first_topic(self):
        enrollment = make_enrollment()
        assert current_topic(enrollment)["topic_id"] == "TOPIC_0"

    def test_picks_partially_done_topic(self):
        enrollment = make_enrollment()
        complete(enrollment, 0, 0)
        complete(enrollment, 0, 1)
        complete(enrollment, 1, 0)
        assert current_topic(enrollment)["topic_id"] == "TOPIC_1"

    def test_no_topics(self):
        assert current_topic({"topics_progress": []}) is None

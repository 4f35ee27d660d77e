"""
SequenceService: strictly increasing, per-name, transactional.
"""

from insurance_kernel.services.sequence_service import SequenceService


class TestSequenceService:
    def test_first_value_is_one(self, session):
        assert SequenceService(session).next_value("test_first") == 1

    def test_values_strictly_increase(self, session):
        service = SequenceService(session)
        values = [service.next_value("test_increase") for _ in range(5)]
        assert values == [1, 2, 3, 4, 5]

    def test_sequences_are_independent(self, session):
        service = SequenceService(session)
        service.next_value("test_a")
        service.next_value("test_a")
        assert service.next_value("test_b") == 1
        assert service.current_value("test_a") == 2

    def test_unknown_sequence_has_no_current_value(self, session):
        assert SequenceService(session).current_value("never_used") is None

    def test_rollback_gives_the_value_back(self, session):
        service = SequenceService(session)
        service.next_value("test_rollback")

        nested = session.begin_nested()
        service.next_value("test_rollback")
        nested.rollback()

        assert service.current_value("test_rollback") == 1
        assert service.next_value("test_rollback") == 2

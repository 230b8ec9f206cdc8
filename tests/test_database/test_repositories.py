"""Tests for database repositories."""

import pytest
from datetime import datetime, timezone, timedelta
from unittest.mock import MagicMock

from conftest import make_binding
from outlook_sync.database.models import CalendarBindingModel, CredentialModel
from outlook_sync.database.repositories import (
    CalendarBindingRepository,
    CredentialRepository,
    apply_binding_to_row,
    binding_to_domain,
)
from outlook_sync.models.binding import UnloadableBinding
from outlook_sync.models.enums import EventColor, EventStatus, RsvpResponse, TitleHandling
from outlook_sync.models.exclusion import ColorExclusionRule, RsvpExclusionRule
from outlook_sync.utils.errors import BindingNotFoundError, ConfigurationError


def row_for(binding):
    return apply_binding_to_row(binding, CalendarBindingModel())


def returning_one(session, row):
    result = MagicMock()
    result.scalar_one_or_none.return_value = row
    session.execute.return_value = result


def returning_many(session, rows):
    result = MagicMock()
    result.scalars.return_value.all.return_value = rows
    session.execute.return_value = result


class TestBindingMapping:
    """Test suite for row <-> snapshot conversion."""

    def test_round_trip(self):
        """Test every configuration field survives the row."""
        binding = make_binding(
            title_handling=TitleHandling.HIDE,
            custom_title="Blocked",
            target_status=EventStatus.TENTATIVE,
            custom_tag="[W]",
            color_exclusion=ColorExclusionRule.exclude(EventColor.RED, EventColor.DARK_BLUE),
            rsvp_exclusion=RsvpExclusionRule.exclude(RsvpResponse.NO),
            sync_days_forward=14,
        ).record_successful_sync(3)

        row = row_for(binding)

        assert row.excluded_colors == "Red,DarkBlue"
        assert row.excluded_statuses is None
        assert binding_to_domain(row) == binding

    def test_invalid_enum_column(self):
        """Test an unknown title handling value is a configuration error."""
        row = row_for(make_binding())
        row.title_handling = "Scramble"

        with pytest.raises(ConfigurationError):
            binding_to_domain(row)


class TestCalendarBindingRepository:
    """Test suite for CalendarBindingRepository."""

    @pytest.mark.asyncio
    async def test_get_by_id(self, mock_db_session):
        """Test get_by_id maps the row."""
        binding = make_binding()
        returning_one(mock_db_session, row_for(binding))
        repo = CalendarBindingRepository(mock_db_session)

        result = await repo.get_by_id(binding.id)

        assert result == binding
        mock_db_session.execute.assert_called_once()

    @pytest.mark.asyncio
    async def test_get_by_id_missing(self, mock_db_session):
        """Test get_by_id returns None for unknown ids."""
        returning_one(mock_db_session, None)
        repo = CalendarBindingRepository(mock_db_session)

        assert await repo.get_by_id("missing") is None

    @pytest.mark.asyncio
    async def test_get_enabled_reports_malformed_rows(self, mock_db_session):
        """Test a row with a bad exclusion rule comes back as unloadable."""
        good = make_binding("Good")
        bad_row = row_for(make_binding("Bad", target_calendar_external_id="other"))
        bad_row.excluded_colors = "Red,Chartreuse"
        returning_many(mock_db_session, [bad_row, row_for(good)])
        repo = CalendarBindingRepository(mock_db_session)

        result = await repo.get_enabled()

        assert result == [
            UnloadableBinding(
                id=bad_row.id,
                name="Bad",
                error_message="Invalid EventColor value 'Chartreuse' in exclusion rule",
            ),
            good,
        ]

    @pytest.mark.asyncio
    async def test_exists_pair(self, mock_db_session):
        """Test pair lookup."""
        returning_one(mock_db_session, row_for(make_binding()))
        repo = CalendarBindingRepository(mock_db_session)

        assert await repo.exists_pair("a", "b", "c", "d") is True

    @pytest.mark.asyncio
    async def test_add_flushes(self, mock_db_session):
        """Test add stages the row without committing."""
        mock_db_session.add = MagicMock()
        binding = make_binding()
        repo = CalendarBindingRepository(mock_db_session)

        await repo.add(binding)

        staged = mock_db_session.add.call_args.args[0]
        assert isinstance(staged, CalendarBindingModel)
        assert staged.id == binding.id
        mock_db_session.flush.assert_awaited_once()
        mock_db_session.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_writes_snapshot(self, mock_db_session):
        """Test update copies sync metadata onto the stored row."""
        binding = make_binding()
        row = row_for(binding)
        returning_one(mock_db_session, row)
        repo = CalendarBindingRepository(mock_db_session)

        await repo.update(binding.record_failed_sync("boom"))

        assert row.last_sync_error == "boom"
        assert row.last_sync_at is not None
        mock_db_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_update_missing(self, mock_db_session):
        """Test updating an unknown binding raises."""
        returning_one(mock_db_session, None)
        repo = CalendarBindingRepository(mock_db_session)

        with pytest.raises(BindingNotFoundError):
            await repo.update(make_binding())

    @pytest.mark.asyncio
    async def test_delete(self, mock_db_session):
        """Test delete reports whether the row existed."""
        row = row_for(make_binding())
        returning_one(mock_db_session, row)
        repo = CalendarBindingRepository(mock_db_session)

        assert await repo.delete(row.id) is True
        mock_db_session.delete.assert_awaited_once_with(row)

        returning_one(mock_db_session, None)
        assert await repo.delete(row.id) is False


class TestCredentialRepository:
    """Test suite for CredentialRepository."""

    @pytest.fixture
    def credential(self):
        return CredentialModel(
            id="cred-1",
            friendly_name="Work",
            access_token="old",
            refresh_token="refresh-old",
            token_expires_at=datetime.now(timezone.utc),
            is_invalid=True,
        )

    @pytest.mark.asyncio
    async def test_update_tokens(self, mock_db_session, credential):
        """Test refreshed tokens are stored and the credential revalidated."""
        returning_one(mock_db_session, credential)
        repo = CredentialRepository(mock_db_session)
        expires_at = datetime.now(timezone.utc) + timedelta(hours=1)

        result = await repo.update_tokens("cred-1", "new", None, expires_at)

        assert result is credential
        assert credential.access_token == "new"
        assert credential.refresh_token == "refresh-old"
        assert credential.token_expires_at == expires_at
        assert credential.is_invalid is False

    @pytest.mark.asyncio
    async def test_update_tokens_missing(self, mock_db_session):
        """Test update_tokens returns None for unknown credentials."""
        returning_one(mock_db_session, None)
        repo = CredentialRepository(mock_db_session)

        assert await repo.update_tokens("x", "new", None, datetime.now(timezone.utc)) is None

    @pytest.mark.asyncio
    async def test_mark_invalid(self, mock_db_session, credential):
        """Test mark_invalid flags the credential."""
        credential.is_invalid = False
        returning_one(mock_db_session, credential)
        repo = CredentialRepository(mock_db_session)

        await repo.mark_invalid("cred-1")

        assert credential.is_invalid is True
        mock_db_session.flush.assert_awaited_once()

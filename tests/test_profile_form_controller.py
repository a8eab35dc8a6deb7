import asyncio
import unittest
from datetime import datetime, timezone

from harmoniq.exceptions import NotAuthenticatedError, StoreError
from harmoniq.forms.controller import GENERIC_SUBMISSION_ERROR, FormState, ProfileFormController
from harmoniq.navigation import DASHBOARD_PATH, LOGIN_PATH, RecordingNavigator
from harmoniq.schemas.auth import Identity
from harmoniq.schemas.profile import ProfileDraft, ProfileField
from harmoniq.services.profile_cache import ProfileCache
from tests.fakes import VALID_PROFILE, RecordingStore, fill


IDENTITY = Identity(user_id="user-1", email="jo@example.com", access_token="token-user-1")


class TestProfileFormController(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.store = RecordingStore()
        self.cache = ProfileCache(ttl_seconds=300)
        self.navigator = RecordingNavigator()
        self.controller = self._controller()

    def _controller(self, **kwargs):
        options = {
            "identity": IDENTITY,
            "store": self.store,
            "cache": self.cache,
            "navigator": self.navigator,
        }
        options.update(kwargs)
        return ProfileFormController(**options)

    async def _start_held_submit(self):
        self.store.hold = asyncio.Event()
        task = asyncio.create_task(self.controller.submit())
        await asyncio.sleep(0)
        self.assertIs(self.controller.state, FormState.SUBMITTING)
        return task

    def test_starts_editing_with_default_draft(self):
        self.assertIs(self.controller.state, FormState.EDITING)
        self.assertEqual(self.controller.draft, ProfileDraft())
        self.assertTrue(self.controller.can_submit)
        self.assertFalse(self.controller.is_dirty)

    async def test_minor_age_is_the_only_error_and_store_is_untouched(self):
        fill(self.controller, {**VALID_PROFILE, "name": "Jo", "age": 17})

        state = await self.controller.submit()

        self.assertIs(state, FormState.EDITING)
        self.assertEqual(list(self.controller.field_errors), [ProfileField.AGE])
        self.assertEqual(self.store.upsert_calls, [])
        self.assertIsNone(self.controller.submission_error)

    async def test_every_field_error_is_reported_together(self):
        state = await self.controller.submit()

        self.assertIs(state, FormState.EDITING)
        self.assertEqual(
            set(self.controller.field_errors),
            {ProfileField.NAME, ProfileField.OCCUPATION, ProfileField.WAKE_UP_TIME, ProfileField.SLEEP_TIME},
        )
        self.assertEqual(self.store.upsert_calls, [])

    async def test_valid_draft_without_profile_creates_record(self):
        fill(self.controller)

        state = await self.controller.submit()

        self.assertIs(state, FormState.SUCCESS)
        record = self.controller.baseline
        self.assertIsNotNone(record)
        self.assertTrue(record.id)
        self.assertIsNotNone(record.created_at)
        self.assertEqual(record.user_id, IDENTITY.user_id)
        self.assertEqual(self.controller.draft, ProfileDraft.from_record(record))
        self.assertFalse(self.controller.is_dirty)
        self.assertEqual(self.store.upsert_calls[0]["user_id"], IDENTITY.user_id)
        self.assertEqual(self.navigator.history, [DASHBOARD_PATH])
        self.assertEqual(self.cache.lookup(IDENTITY.user_id), (True, record))

    async def test_network_failure_returns_to_editing_with_draft_intact(self):
        fill(self.controller)
        draft_before = self.controller.draft
        self.store.upsert_error = StoreError("The profile store is unreachable. Please try again.")

        state = await self.controller.submit()

        self.assertIs(state, FormState.EDITING)
        self.assertEqual(self.controller.submission_error, "The profile store is unreachable. Please try again.")
        self.assertEqual(self.controller.draft, draft_before)
        self.assertIsNone(self.controller.baseline)
        self.assertFalse(self.controller.requires_reauth)
        self.assertEqual(self.navigator.history, [])

    async def test_unexpected_failure_is_reported_not_raised(self):
        fill(self.controller)
        self.store.upsert_error = RuntimeError("boom")

        with self.assertLogs("harmoniq.forms.controller", level="ERROR"):
            state = await self.controller.submit()

        self.assertIs(state, FormState.EDITING)
        self.assertEqual(self.controller.submission_error, GENERIC_SUBMISSION_ERROR)

    async def test_manual_retry_after_failure_succeeds(self):
        fill(self.controller)
        self.store.upsert_error = StoreError("Temporarily unavailable")
        await self.controller.submit()

        self.store.upsert_error = None
        state = await self.controller.submit()

        self.assertIs(state, FormState.SUCCESS)
        self.assertIsNone(self.controller.submission_error)
        self.assertEqual(len(self.store.upsert_calls), 2)

    async def test_invalid_retry_replaces_earlier_submission_error(self):
        fill(self.controller)
        self.store.upsert_error = NotAuthenticatedError()
        await self.controller.submit()
        self.assertTrue(self.controller.requires_reauth)

        self.controller.edit(ProfileField.AGE, 17)
        state = await self.controller.submit()

        self.assertIs(state, FormState.EDITING)
        self.assertEqual(list(self.controller.field_errors), [ProfileField.AGE])
        self.assertIsNone(self.controller.submission_error)
        self.assertFalse(self.controller.requires_reauth)
        self.assertEqual(len(self.store.upsert_calls), 1)

    async def test_auth_loss_requests_reauthentication(self):
        fill(self.controller)
        self.store.upsert_error = NotAuthenticatedError()

        state = await self.controller.submit()

        self.assertIs(state, FormState.EDITING)
        self.assertTrue(self.controller.requires_reauth)
        self.assertEqual(self.navigator.history, [LOGIN_PATH])

    async def test_submit_without_identity_never_calls_store(self):
        self.controller = self._controller(identity=None)
        fill(self.controller)

        state = await self.controller.submit()

        self.assertIs(state, FormState.EDITING)
        self.assertTrue(self.controller.requires_reauth)
        self.assertEqual(self.controller.submission_error, NotAuthenticatedError().message)
        self.assertEqual(self.store.upsert_calls, [])

    async def test_second_submit_while_in_flight_is_rejected(self):
        fill(self.controller)
        task = await self._start_held_submit()

        self.assertFalse(self.controller.can_submit)
        self.assertTrue(self.controller.is_submitting)
        second = await self.controller.submit()

        self.assertIs(second, FormState.SUBMITTING)
        self.assertEqual(len(self.store.upsert_calls), 1)

        self.store.hold.set()
        self.assertIs(await task, FormState.SUCCESS)
        self.assertEqual(len(self.store.upsert_calls), 1)

    async def test_resubmitting_same_draft_updates_single_record(self):
        ticks = iter(datetime(2026, 10, 19, 8, minute, tzinfo=timezone.utc) for minute in range(60))
        self.store = RecordingStore(clock=lambda: next(ticks))
        self.controller = self._controller()
        fill(self.controller)
        await self.controller.submit()
        first = self.controller.baseline

        state = await self.controller.submit()
        second = self.controller.baseline

        self.assertIs(state, FormState.SUCCESS)
        self.assertEqual(len(self.store.inner), 1)
        self.assertEqual(second.id, first.id)
        self.assertEqual(second.created_at, first.created_at)
        self.assertGreater(second.updated_at, first.updated_at)

    async def test_edit_during_submission_is_not_overwritten(self):
        fill(self.controller)
        task = await self._start_held_submit()

        self.controller.edit(ProfileField.NAME, "Joanna")
        self.store.hold.set()
        state = await task

        self.assertIs(state, FormState.EDITING)
        self.assertEqual(self.controller.draft.name, "Joanna")
        self.assertEqual(self.controller.baseline.name, "Jo")
        self.assertTrue(self.controller.is_dirty)
        self.assertEqual(self.navigator.history, [])

    async def test_result_after_close_is_ignored(self):
        fill(self.controller)
        seen = []
        self.controller.subscribe(lambda controller: seen.append(controller.state))
        task = await self._start_held_submit()

        self.controller.close()
        self.store.hold.set()
        await task

        self.assertEqual(seen, [FormState.VALIDATING, FormState.SUBMITTING])
        self.assertIsNone(self.controller.baseline)
        self.assertEqual(self.navigator.history, [])
        hit, record = self.cache.lookup(IDENTITY.user_id)
        self.assertTrue(hit)
        self.assertEqual(record.name, "Jo")

    async def test_failure_after_close_is_ignored(self):
        fill(self.controller)
        self.store.upsert_error = StoreError("gone")
        task = await self._start_held_submit()

        self.controller.close()
        self.store.hold.set()
        await task

        self.assertIsNone(self.controller.submission_error)
        self.assertFalse(self.controller.can_submit)

    async def test_listeners_follow_the_state_machine(self):
        fill(self.controller)
        seen = []
        unsubscribe = self.controller.subscribe(lambda controller: seen.append(controller.state))

        await self.controller.submit()
        unsubscribe()
        self.controller.edit(ProfileField.HOBBIES, "Chess, go")

        self.assertEqual(seen, [FormState.VALIDATING, FormState.SUBMITTING, FormState.SUCCESS])
        self.assertIs(self.controller.state, FormState.EDITING)

    def test_edit_revalidates_the_field(self):
        self.controller.edit(ProfileField.AGE, 17)
        self.assertIn(ProfileField.AGE, self.controller.field_errors)

        self.controller.edit(ProfileField.AGE, 18)
        self.assertNotIn(ProfileField.AGE, self.controller.field_errors)
        self.assertEqual(self.controller.check_field(ProfileField.AGE), [])

    def test_toggling_sport_twice_restores_draft(self):
        self.controller.edit(ProfileField.SPORTS_ACTIVITIES, ["Running"])

        self.controller.toggle_sport_activity("Yoga")
        self.assertEqual(self.controller.draft.sports_activities, ["Running", "Yoga"])
        self.controller.toggle_sport_activity("Yoga")

        self.assertEqual(self.controller.draft.sports_activities, ["Running"])

    async def test_existing_profile_is_loaded_as_baseline(self):
        fill(self.controller)
        await self.controller.submit()
        record = self.controller.baseline

        editor = self._controller(baseline=record)

        self.assertEqual(editor.draft.name, "Jo")
        self.assertEqual(editor.draft.sports_activities, ["Yoga"])
        self.assertFalse(editor.is_dirty)
        editor.edit(ProfileField.OCCUPATION, "Surgeon")
        self.assertTrue(editor.is_dirty)


if __name__ == "__main__":
    unittest.main()

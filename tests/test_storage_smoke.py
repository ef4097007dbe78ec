"""Smoke tests for the JSON document store."""

import pytest

from feynlearn.errors import PreconditionError, UpstreamError
from feynlearn.models.user_profile import UserProfile
from feynlearn.storage import files
from feynlearn.storage import user_profile as profile_store


class TestFiles:
    def test_write_then_read(self, data_dir):
        path = files.user_dir("alice") / "doc.json"
        files.write_json(path, {"a": 1})
        assert files.read_json(path) == {"a": 1}
        assert path.parent.parent == data_dir / "users"

    def test_missing_document(self):
        assert files.read_json(files.user_dir("alice") / "nope.json") is None

    def test_corrupt_document(self):
        path = files.user_dir("alice") / "bad.json"
        path.write_text("{not json")
        with pytest.raises(UpstreamError):
            files.read_json(path)

    def test_iter_skips_corrupt(self):
        directory = files.collection_dir("alice", "things")
        files.write_json(directory / "a.json", {"n": 1})
        (directory / "b.json").write_text("garbage")
        assert list(files.iter_json(directory)) == [{"n": 1}]

    def test_no_temp_files_left_behind(self):
        directory = files.collection_dir("alice", "things")
        files.write_json(directory / "a.json", {"n": 1})
        files.write_json(directory / "a.json", {"n": 2})
        assert [p.name for p in directory.iterdir()] == ["a.json"]

    @pytest.mark.parametrize("bad", ["..", ".", "a/b", "", "x" * 200, "semi;colon"])
    def test_rejects_unsafe_ids(self, bad):
        with pytest.raises(PreconditionError):
            files.validate_id(bad)

    def test_accepts_email_like_ids(self):
        assert files.validate_id("ada.lovelace@example.com") == "ada.lovelace@example.com"

    def test_user_lock_is_released(self):
        with files.user_lock("alice"):
            pass
        with files.user_lock("alice"):
            pass


class TestProfileStore:
    def test_load_unknown_profile(self):
        assert profile_store.load_profile("user_new") is None

    def test_save_and_load(self):
        profile = UserProfile(uid="user_save", name="Ada", xp=750, level=2)
        profile.preferences.dark_mode = False
        profile_store.save_profile(profile)

        loaded = profile_store.load_profile("user_save")
        assert loaded.name == "Ada"
        assert loaded.xp == 750
        assert loaded.level == 2
        assert loaded.preferences.dark_mode is False
        assert loaded.created_at == profile.created_at

    def test_iter_profiles_in_uid_order(self):
        for uid in ["carol", "alice", "bob"]:
            profile_store.save_profile(UserProfile(uid=uid))
        files.user_dir("no_profile_yet")
        assert [p.uid for p in profile_store.iter_profiles()] == ["alice", "bob", "carol"]

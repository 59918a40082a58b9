"""
Hypothesis-based property tests for link/unlink.

Random package trees are linked into random pre-existing destination
directory layouts, checking idempotence, the link/unlink round trip and
that dry runs plan the same tasks without touching the filesystem.
"""

import tempfile

from hypothesis import assume, given, settings, strategies as st

from conftest import XdotTestEnv, task_summary


def try_create_package(env, files):
    """Try to create a package, return False if its paths collide."""
    try:
        env.create_package("pkg", files)
        return True
    except OSError:
        return False


def try_create_target_dirs(env, dirs):
    try:
        for path in dirs:
            env.create_target_dir(path)
        return True
    except OSError:
        return False


# =============================================================================
# Strategies for generating test data
# =============================================================================

# Small alphabet so that package paths and destination dirs overlap often
path_component_st = st.text(alphabet="abc.", min_size=1, max_size=3).filter(
    lambda x: x not in (".", "..")
)

rel_path_st = st.lists(path_component_st, min_size=1, max_size=3).map("/".join)

package_st = st.dictionaries(
    keys=rel_path_st,
    values=st.text(alphabet="xyz", max_size=5),
    min_size=1,
    max_size=6,
)

target_dirs_st = st.lists(rel_path_st, max_size=4)


def _make_env(tmpdir, files, target_dirs):
    env = XdotTestEnv(tmpdir)
    assume(try_create_package(env, files))
    assume(try_create_target_dirs(env, target_dirs))
    return env


class TestLinkProperties:
    """Properties that hold for any package without conflicts."""

    @settings(max_examples=60, deadline=None)
    @given(files=package_st, target_dirs=target_dirs_st)
    def test_linking_twice_is_idempotent(self, files, target_dirs):
        with tempfile.TemporaryDirectory() as tmpdir:
            env = _make_env(tmpdir, files, target_dirs)

            first = env.link("pkg")
            assume(first.success)
            state = env.get_filesystem_state()

            second = env.link("pkg")

            assert second.success
            assert second.mutations == []
            assert env.get_filesystem_state() == state

    @settings(max_examples=60, deadline=None)
    @given(files=package_st, target_dirs=target_dirs_st)
    def test_unlink_undoes_link(self, files, target_dirs):
        with tempfile.TemporaryDirectory() as tmpdir:
            env = _make_env(tmpdir, files, target_dirs)
            before = env.get_filesystem_state()

            linked = env.link("pkg")
            assume(linked.success)
            unlinked = env.unlink("pkg")

            assert unlinked.success
            assert len(unlinked.mutations) == len(linked.mutations)
            assert env.get_filesystem_state() == before

    @settings(max_examples=60, deadline=None)
    @given(files=package_st, target_dirs=target_dirs_st, unlink_first=st.booleans())
    def test_dry_run_matches_real_run(self, files, target_dirs, unlink_first):
        with tempfile.TemporaryDirectory() as tmpdir:
            env = _make_env(tmpdir, files, target_dirs)
            if unlink_first:
                env.link("pkg")
            run = env.unlink if unlink_first else env.link
            before = env.get_filesystem_state()

            dry = run("pkg", simulate=True)
            assert env.get_filesystem_state() == before

            real = run("pkg")
            assert dry.failures == real.failures
            assert task_summary(dry) == task_summary(real)

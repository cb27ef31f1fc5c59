"""
Tests for the optimize -> generate -> validate pipeline.

The backend manager is mocked so each test scripts the backend's answers
in call order and then inspects what the session ends up holding.
"""

import threading
import pytest
from unittest.mock import Mock

from prototyper.models.manager import BackendManager
from prototyper.models.prompts import PromptLibrary, PromptStore, PromptKind
from prototyper.models.providers.base import BackendConfig, BackendKind, ConfigError, NetworkError
from prototyper.models.registry import Role
from prototyper.pipeline.prototype.orchestrator import PrototypePipeline
from prototyper.pipeline.prototype.types import PrototypeSession, READY_STATUS, NO_DOCUMENT_STATUS


GENERATED = """<!DOCTYPE html>
<html><head><title>Todo</title></head><body><ul></ul></body></html>"""

IMPROVED = """<!DOCTYPE html>
<html><head><title>Todo</title></head>
<body><input id="new"><button id="add">Add</button><ul id="todos"></ul>
<script>document.getElementById('add').onclick = () => {};</script></body></html>"""


@pytest.fixture
def library():
    return PromptLibrary()


@pytest.fixture
def manager():
    manager = Mock(spec=BackendManager)
    manager.list_models.return_value = ["llama3:8b", "qwen2.5-coder:7b"]
    return manager


@pytest.fixture
def session(library, manager):
    session = PrototypeSession(
        backend=BackendConfig(kind=BackendKind.LOCAL, base_url="http://localhost:11434"),
        prompts=PromptStore(library),
        requirements="a todo list app",
    )
    session.registry.refresh(manager, session.backend)
    return session


@pytest.fixture
def pipeline(manager):
    return PrototypePipeline(manager)


class TestOptimize:
    def test_replaces_requirements(self, pipeline, manager, session):
        manager.complete.return_value = "a todo list app with add/remove/complete actions"

        result = pipeline.optimize(session)

        assert result == "a todo list app with add/remove/complete actions"
        assert session.requirements == result
        manager.complete.assert_called_once_with(
            session.backend,
            session.prompts.get(PromptKind.OPTIMIZATION),
            "a todo list app",
            "llama3:8b",
        )

    def test_uses_current_prompt_and_model(self, pipeline, manager, session):
        session.prompts.set(PromptKind.OPTIMIZATION, "Be brief.")
        session.registry.select(Role.OPTIMIZE, "qwen2.5-coder:7b")
        manager.complete.return_value = "brief"

        pipeline.optimize(session)

        args = manager.complete.call_args[0]
        assert args[1] == "Be brief."
        assert args[3] == "qwen2.5-coder:7b"

    def test_failure_empties_requirements_and_notifies(self, pipeline, manager, session):
        manager.complete.side_effect = NetworkError("Local backend returned HTTP 500 for /api/chat")

        assert pipeline.optimize(session) == ""
        assert session.requirements == ""
        assert session.drain_notifications() == ["API error: Local backend returned HTTP 500 for /api/chat"]

    def test_missing_model_makes_no_call(self, pipeline, manager, session):
        """
        Test: Optimize with no model for the role
        How: Empty the registry, then trigger the stage
        Ensures: The backend is never called and the requirements are left alone
        """
        session.registry.populate([])

        assert pipeline.optimize(session) == "a todo list app"
        assert session.requirements == "a todo list app"
        manager.complete.assert_not_called()
        assert session.drain_notifications() == ["Please select a model for optimize"]

    def test_config_error_message(self, pipeline, manager, session):
        manager.complete.side_effect = ConfigError("Please provide an API key for the hosted backend.")

        pipeline.optimize(session)

        assert session.drain_notifications() == ["Please provide an API key for the hosted backend."]


class TestGenerate:
    def test_end_to_end_todo_app(self, pipeline, manager, session):
        """
        Test: Full optimize then generate run
        How: Script the three backend answers, each wrapping its document in prose
        Ensures: The artifact holds exactly the improved document under the default name
        """
        manager.complete.side_effect = [
            "a todo list app with add/remove/complete actions",
            f"Sure! Here is the prototype:\n```html\n{GENERATED}\n```",
            f"I fixed a few issues.\n{IMPROVED}\nEnjoy!",
        ]

        pipeline.optimize(session)
        artifact = pipeline.generate(session)

        assert artifact is not None
        assert artifact.filename == "improved_prototype.html"
        assert artifact.content == IMPROVED
        assert artifact.media_type == "text/html"
        assert session.artifacts == [artifact]
        assert session.status == READY_STATUS
        assert session.drain_notifications() == []

        generate_call, validate_call = manager.complete.call_args_list[1:]
        assert generate_call[0][2] == "a todo list app with add/remove/complete actions"
        assert validate_call[0][1] == session.prompts.get(PromptKind.VALIDATION)
        assert validate_call[0][2] == (
            "Requirements:\na todo list app with add/remove/complete actions\n"
            f"PrototypeCode:\n{GENERATED}"
        )

    def test_roles_use_their_own_models(self, pipeline, manager, session):
        session.registry.select(Role.VALIDATE, "qwen2.5-coder:7b")
        manager.complete.side_effect = [GENERATED, IMPROVED]

        pipeline.generate(session)

        models = [call[0][3] for call in manager.complete.call_args_list]
        assert models == ["llama3:8b", "qwen2.5-coder:7b"]

    def test_project_name_names_artifact(self, pipeline, manager, session):
        session.project_name = "My  Todo App"
        manager.complete.side_effect = [GENERATED, IMPROVED]

        assert pipeline.generate(session).filename == "My_Todo_App.html"

    def test_artifacts_accumulate(self, pipeline, manager, session):
        manager.complete.side_effect = [GENERATED, IMPROVED, GENERATED, GENERATED]

        first = pipeline.generate(session)
        second = pipeline.generate(session)

        assert session.artifacts == [first, second]
        assert second.content == GENERATED

    def test_empty_generation_aborts(self, pipeline, manager, session):
        manager.complete.side_effect = NetworkError("down")

        assert pipeline.generate(session) is None
        assert manager.complete.call_count == 1
        assert session.artifacts == []
        assert session.status == ""
        assert session.drain_notifications() == ["API error: down"]

    def test_generation_without_document_still_validates(self, pipeline, manager, session):
        manager.complete.side_effect = ["I can only describe it in words.", IMPROVED]

        artifact = pipeline.generate(session)

        assert artifact.content == IMPROVED
        validate_content = manager.complete.call_args_list[1][0][2]
        assert validate_content.endswith("PrototypeCode:\n")

    def test_validation_without_document_reports_no_artifact(self, pipeline, manager, session):
        """
        Test: Final stage answer holds no HTML document
        How: Validation returns prose only
        Ensures: No artifact is produced and the status says so instead of claiming success
        """
        manager.complete.side_effect = [GENERATED, "Looks good to me, no changes needed."]

        assert pipeline.generate(session) is None
        assert session.artifacts == []
        assert session.status == NO_DOCUMENT_STATUS
        assert session.drain_notifications() == []

    def test_validation_with_document_reports_ready(self, pipeline, manager, session):
        manager.complete.side_effect = [GENERATED, IMPROVED]

        pipeline.generate(session)

        assert session.status == READY_STATUS

    def test_status_follows_latest_run(self, pipeline, manager, session):
        manager.complete.side_effect = [GENERATED, IMPROVED, GENERATED, "nothing"]

        pipeline.generate(session)
        pipeline.generate(session)

        assert session.status == NO_DOCUMENT_STATUS
        assert len(session.artifacts) == 1

    def test_validation_failure(self, pipeline, manager, session):
        manager.complete.side_effect = [GENERATED, NetworkError("timeout")]

        assert pipeline.generate(session) is None
        assert session.status == NO_DOCUMENT_STATUS
        assert session.drain_notifications() == ["API error: timeout"]

    def test_missing_generate_model_makes_no_call(self, pipeline, manager, session):
        session.registry.populate([])

        assert pipeline.generate(session) is None
        manager.complete.assert_not_called()
        assert session.drain_notifications() == ["Please select a model for generate"]

    def test_missing_validate_model_stops_after_generation(self, pipeline, manager, session):
        session.registry._selection[Role.VALIDATE] = None
        manager.complete.return_value = GENERATED

        assert pipeline.generate(session) is None
        assert manager.complete.call_count == 1
        assert session.status == ""
        assert session.drain_notifications() == ["Please select a model for validate"]

    def test_failed_optimize_does_not_block_generate(self, pipeline, manager, session):
        manager.complete.side_effect = [NetworkError("down"), GENERATED, IMPROVED]

        pipeline.optimize(session)
        session.requirements = "a todo list app"
        artifact = pipeline.generate(session)

        assert artifact.content == IMPROVED
        assert session.drain_notifications() == ["API error: down"]


class TestRefreshModels:
    def test_refresh(self, pipeline, manager, session):
        manager.list_models.return_value = ["mistral:7b"]

        assert pipeline.refresh_models(session) == ["mistral:7b"]
        assert session.registry.selected(Role.VALIDATE) == "mistral:7b"

    def test_missing_credential(self, pipeline, manager, session):
        manager.list_models.side_effect = ConfigError("Please provide an API key for the hosted backend.")

        assert pipeline.refresh_models(session) == ["llama3:8b", "qwen2.5-coder:7b"]
        assert session.drain_notifications() == ["Please provide an API key for the hosted backend."]

    def test_network_error(self, pipeline, manager, session):
        manager.list_models.side_effect = NetworkError("connection refused")

        pipeline.refresh_models(session)

        assert session.drain_notifications() == ["Error loading models: connection refused"]


class TestSerialization:
    def test_overlapping_triggers_run_one_at_a_time(self, pipeline, manager, session):
        """
        Test: Two generate triggers on one session at once
        How: Block the first backend call until the second trigger has started
        Ensures: The second run starts its calls only after the first run finished
        """
        first_call_started = threading.Event()
        release = threading.Event()
        active = []
        overlaps = []

        def complete(config, system_prompt, user_content, model):
            active.append(1)
            if len(active) > 1:
                overlaps.append(True)
            first_call_started.set()
            release.wait(timeout=5)
            active.pop()
            return IMPROVED

        manager.complete.side_effect = complete

        first = threading.Thread(target=pipeline.generate, args=(session,))
        second = threading.Thread(target=pipeline.generate, args=(session,))
        first.start()
        assert first_call_started.wait(timeout=5)
        second.start()
        release.set()
        first.join(timeout=5)
        second.join(timeout=5)

        assert overlaps == []
        assert manager.complete.call_count == 4
        assert len(session.artifacts) == 2

    def test_notifications_are_not_lost_while_draining(self, session):
        """
        Test: Draining notifications while other threads keep adding them
        How: Four writers notify 500 times each while a reader drains in a loop
        Ensures: Every message is delivered exactly once
        """
        writers_done = threading.Event()
        received = []

        def write(prefix):
            for i in range(500):
                session.notify(f"{prefix}-{i}")

        def read():
            while not writers_done.is_set():
                received.extend(session.drain_notifications())
            received.extend(session.drain_notifications())

        reader = threading.Thread(target=read)
        writers = [threading.Thread(target=write, args=(n,)) for n in range(4)]
        reader.start()
        for writer in writers:
            writer.start()
        for writer in writers:
            writer.join(timeout=10)
        writers_done.set()
        reader.join(timeout=10)

        assert len(received) == 2000
        assert len(set(received)) == 2000

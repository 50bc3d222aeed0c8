"""Tests for DeployOrchestrator using mocked collaborators."""

from unittest.mock import MagicMock

import pytest

from shipyard.deploy.orchestrator import DeployOrchestrator, DeployVars
from shipyard.errors import (
    ContradictionError,
    DeployError,
    EnvironmentNotFoundError,
    EnvironmentNotInitializedError,
    InvalidWorkloadNameError,
    NoInfrastructureChangesError,
    NoSuchEnvironmentError,
    NoSuchWorkloadError,
    ShipyardError,
    UnrecognizedWorkloadTypeError,
    WorkloadNotInitializedError,
)
from shipyard.workloads.models import Environment, Workload, WorkloadManifest
from shipyard.workloads.types import BACKEND_SERVICE, SCHEDULED_JOB

APP = "demo"


def _make_store(workloads=("fe", "be", "worker"), envs=("test",)):
    """Mock store backed by in-memory dicts."""
    registered = {n: Workload(app=APP, name=n, workload_type=BACKEND_SERVICE) for n in workloads}
    environments = {n: Environment(app=APP, name=n) for n in envs}

    def get_workload(app, name):
        if name not in registered:
            raise NoSuchWorkloadError(app, name)
        return registered[name]

    def get_environment(app, name):
        if name not in environments:
            raise NoSuchEnvironmentError(app, name)
        return environments[name]

    def create_workload(workload):
        registered[workload.name] = workload

    store = MagicMock()
    store.list_workloads.side_effect = lambda app: list(registered.values())
    store.get_workload.side_effect = get_workload
    store.create_workload.side_effect = create_workload
    store.list_environments.side_effect = lambda app: list(environments.values())
    store.get_environment.side_effect = get_environment
    return store


def _make_workspace(workloads=("fe", "be", "worker"), envs=("test",), types=None):
    types = types or {}
    workspace = MagicMock()
    workspace.list_workloads.return_value = list(workloads)
    workspace.list_environments.return_value = list(envs)
    workspace.read_workload_manifest.side_effect = lambda name: WorkloadManifest(
        name=name, workload_type=types.get(name, BACKEND_SERVICE)
    )
    return workspace


class _Harness:
    """Builds an orchestrator whose workload and env commands are mocks."""

    def __init__(self, store=None, workspace=None, prompter=None):
        self.store = store or _make_store()
        self.workspace = workspace or _make_workspace()
        self.deployer = MagicMock()
        self.prompter = prompter or MagicMock()
        self.calls: list[tuple[str, str]] = []
        self.commands: dict[str, MagicMock] = {}
        self.init_env_cmd = self._env_cmd("init-env")
        self.deploy_env_cmd = self._env_cmd("deploy-env")

    def _env_cmd(self, label):
        cmd = MagicMock()
        cmd.execute.side_effect = lambda: self.calls.append(("execute", label))
        return cmd

    def command(self, name):
        if name not in self.commands:
            cmd = MagicMock()
            cmd.ask.side_effect = lambda: self.calls.append(("ask", name))
            cmd.validate.side_effect = lambda: self.calls.append(("validate", name))
            cmd.execute.side_effect = lambda: self.calls.append(("execute", name))
            cmd.recommend_actions.side_effect = lambda: self.calls.append(("recommend", name))
            self.commands[name] = cmd
        return self.commands[name]

    def build(self, **overrides):
        values = {"app": APP, "env": "test", "deploy_env": False}
        values.update(overrides)
        return DeployOrchestrator(
            DeployVars(**values),
            store=self.store,
            workspace=self.workspace,
            deployer=self.deployer,
            prompter=self.prompter,
            new_workload_command=lambda name, wtype, options: self.command(name),
            new_init_env_cmd=lambda o: self.init_env_cmd,
            new_deploy_env_cmd=lambda o: self.deploy_env_cmd,
        )

    def executed(self):
        return [name for kind, name in self.calls if kind == "execute"]


class TestDeployOrder:
    """Tests for group ordering during execution."""

    def test_groups_deploy_in_priority_order(self):
        h = _Harness()
        h.build(names=["be/2", "fe/1"]).run()
        assert h.executed() == ["fe", "be"]

    def test_unprioritized_workloads_deploy_last(self):
        h = _Harness()
        h.build(names=["fe/1", "be/1"], deploy_all=True).run()
        executed = h.executed()
        assert set(executed[:2]) == {"fe", "be"}
        assert executed[2] == "worker"

    def test_every_workload_asked_and_validated_before_any_execute(self):
        h = _Harness()
        h.build(names=["fe/1", "be/2", "worker"]).run()
        first_execute = next(i for i, (kind, _) in enumerate(h.calls) if kind == "execute")
        before = h.calls[:first_execute]
        assert {name for kind, name in before if kind == "ask"} == {"fe", "be", "worker"}
        assert {name for kind, name in before if kind == "validate"} == {"fe", "be", "worker"}

    def test_recommend_actions_follow_each_execute(self):
        h = _Harness()
        h.build(names=["fe/1", "be/2"]).run()
        assert h.calls[-4:] == [
            ("execute", "fe"),
            ("recommend", "fe"),
            ("execute", "be"),
            ("recommend", "be"),
        ]

    def test_deployed_records_successes(self):
        h = _Harness()
        orchestrator = h.build(names=["fe", "be"])
        orchestrator.run()
        assert sorted(orchestrator.deployed) == ["be", "fe"]


class TestFailureHandling:
    """Tests for validation and execution failures."""

    def test_malformed_token_rejected_before_any_io(self):
        h = _Harness()
        with pytest.raises(InvalidWorkloadNameError):
            h.build(names=["fe", "a/1/2"]).run()
        assert h.store.method_calls == []
        assert h.workspace.method_calls == []

    def test_validation_failure_prevents_all_execution(self):
        h = _Harness()
        h.command("be").validate.side_effect = ShipyardError("bad manifest")
        with pytest.raises(DeployError, match="validate svc deploy for be: bad manifest"):
            h.build(names=["fe/1", "be/2"]).run()
        assert h.executed() == []

    def test_ask_failure_prevents_all_execution(self):
        h = _Harness()
        h.command("fe").ask.side_effect = RuntimeError("boom")
        with pytest.raises(DeployError, match="ask svc deploy for fe: boom"):
            h.build(names=["fe/1", "be/2"]).run()
        assert h.executed() == []

    def test_execution_failure_stops_later_groups(self):
        h = _Harness()
        h.command("fe").execute.side_effect = RuntimeError("stack failed")
        with pytest.raises(DeployError) as exc_info:
            h.build(names=["fe/1", "be/2"]).run()
        assert str(exc_info.value) == "execute deployment 1 of 1 in group 1: stack failed"
        assert h.executed() == []
        h.command("be").execute.assert_not_called()

    def test_execution_error_names_position_in_group(self):
        h = _Harness()
        h.command("worker").execute.side_effect = RuntimeError("nope")
        with pytest.raises(DeployError, match="execute deployment 2 of 2 in group 2"):
            h.build(names=["fe/1", "be", "worker"]).run()

    def test_no_changes_is_ignored(self):
        h = _Harness()
        h.command("fe").execute.side_effect = NoInfrastructureChangesError("no changes")
        orchestrator = h.build(names=["fe/1", "be/2"])
        orchestrator.run()
        assert h.executed() == ["be"]
        assert orchestrator.unchanged == ["fe"]
        h.command("fe").recommend_actions.assert_called_once()

    def test_failure_in_middle_group_isolates_later_groups(self):
        h = _Harness()
        h.command("be").execute.side_effect = RuntimeError("quota exceeded")
        orchestrator = h.build(names=["fe/1", "be/2", "cache/3", "worker/3"])
        with pytest.raises(DeployError, match="execute deployment 1 of 1 in group 2: quota exceeded"):
            orchestrator.run()
        assert orchestrator.deployed == ["fe"]
        h.command("fe").recommend_actions.assert_called_once()
        h.command("cache").execute.assert_not_called()
        h.command("worker").execute.assert_not_called()

    def test_no_changes_does_not_block_later_groups(self):
        h = _Harness()
        h.command("be").execute.side_effect = NoInfrastructureChangesError("same")
        orchestrator = h.build(names=["fe/1", "be/2", "cache/3", "worker/3"])
        orchestrator.run()
        executed = h.executed()
        assert executed[0] == "fe"
        assert set(executed[1:]) == {"cache", "worker"}
        assert orchestrator.unchanged == ["be"]

    def test_recommend_failure_is_annotated(self):
        h = _Harness()
        h.command("fe").recommend_actions.side_effect = RuntimeError("oops")
        with pytest.raises(DeployError, match="recommend actions for fe: oops"):
            h.build(names=["fe"]).run()

    def test_error_keeps_cause_recommendation(self):
        h = _Harness()
        h.command("fe").validate.side_effect = WorkloadNotInitializedError("fe")
        with pytest.raises(DeployError) as exc_info:
            h.build(names=["fe"]).run()
        assert "workload init --name fe" in exc_info.value.recommend_actions()

    def test_empty_plan_is_an_error(self):
        h = _Harness(workspace=_make_workspace(workloads=()))
        with pytest.raises(ShipyardError, match="no workloads to deploy"):
            h.build(deploy_all=True).run()


class TestEnvironmentHandling:
    """Tests for environment resolution, initialization and deployment."""

    def test_missing_environment(self):
        h = _Harness(store=_make_store(envs=()), workspace=_make_workspace(envs=()))
        with pytest.raises(EnvironmentNotFoundError, match='"test" does not exist'):
            h.build(names=["fe"]).run()

    def test_store_failure_is_annotated(self):
        store = _make_store()
        store.get_environment.side_effect = RuntimeError("throttled")
        h = _Harness(store=store)
        with pytest.raises(DeployError, match="get environment from config store: throttled"):
            h.build(names=["fe"]).run()

    def test_declined_env_init(self):
        h = _Harness(store=_make_store(envs=()))
        h.prompter.confirm.return_value = False
        with pytest.raises(EnvironmentNotInitializedError, match="env test does not exist in app demo"):
            h.build(names=["fe"], deploy_env=None).run()
        h.init_env_cmd.execute.assert_not_called()

    def test_init_env_false(self):
        h = _Harness(store=_make_store(envs=()))
        with pytest.raises(EnvironmentNotInitializedError):
            h.build(names=["fe"], init_env=False).run()
        h.prompter.confirm.assert_not_called()

    def test_init_without_deploy_is_a_contradiction(self):
        h = _Harness(store=_make_store(envs=()))
        with pytest.raises(ContradictionError):
            h.build(names=["fe"], init_env=True, deploy_env=False).run()
        h.init_env_cmd.execute.assert_not_called()

    def test_declined_init_wins_over_contradiction(self):
        h = _Harness(store=_make_store(envs=()))
        with pytest.raises(EnvironmentNotInitializedError):
            h.build(names=["fe"], init_env=False, deploy_env=False).run()

    def test_initialized_env_is_deployed_before_workloads(self):
        h = _Harness(store=_make_store(envs=()))
        h.build(names=["fe"], init_env=True, deploy_env=None).run()
        assert h.executed() == ["init-env", "deploy-env", "fe"]
        h.prompter.confirm.assert_not_called()

    def test_env_init_failure_is_annotated(self):
        h = _Harness(store=_make_store(envs=()))
        h.init_env_cmd.execute.side_effect = RuntimeError("denied")
        with pytest.raises(DeployError, match="initialize environment test: denied"):
            h.build(names=["fe"], init_env=True, deploy_env=True).run()

    def test_confirms_env_deploy_when_unspecified(self):
        h = _Harness()
        h.prompter.confirm.return_value = True
        h.build(names=["fe"], deploy_env=None).run()
        h.prompter.confirm.assert_called_once()
        assert h.executed() == ["deploy-env", "fe"]

    def test_skips_env_deploy_when_declined(self):
        h = _Harness()
        h.prompter.confirm.return_value = False
        h.build(names=["fe"], deploy_env=None).run()
        assert h.executed() == ["fe"]

    def test_env_deploy_no_changes_is_ignored(self):
        h = _Harness()
        h.deploy_env_cmd.execute.side_effect = NoInfrastructureChangesError("same")
        h.build(names=["fe"], deploy_env=True).run()
        assert h.executed() == ["fe"]

    def test_env_deploy_failure_stops_run(self):
        h = _Harness()
        h.deploy_env_cmd.execute.side_effect = RuntimeError("vpc")
        with pytest.raises(DeployError, match="deploy environment test: vpc"):
            h.build(names=["fe"], deploy_env=True).run()
        assert h.executed() == []

    def test_env_only_in_store_is_not_deployed(self):
        h = _Harness(workspace=_make_workspace(envs=()))
        h.build(names=["fe"], deploy_env=True).run()
        h.deploy_env_cmd.execute.assert_not_called()
        assert h.executed() == ["fe"]

    def test_single_environment_is_defaulted(self, capsys):
        h = _Harness()
        h.build(names=["fe"], env=None).run()
        assert "Only found one environment, defaulting to: test" in capsys.readouterr().out
        h.prompter.select_one.assert_not_called()

    def test_prompts_for_environment(self):
        h = _Harness(store=_make_store(envs=("test", "prod")))
        h.prompter.select_one.return_value = "prod"
        orchestrator = h.build(names=["fe"], env=None)
        orchestrator.run()
        assert orchestrator.env_name == "prod"
        options = h.prompter.select_one.call_args[0][1]
        assert [o.value for o in options] == ["test", "prod"]

    def test_environment_prompt_marks_uninitialized(self):
        h = _Harness(workspace=_make_workspace(envs=("test", "staging")))
        h.prompter.select_one.return_value = "test"
        h.build(names=["fe"], env=None).run()
        options = h.prompter.select_one.call_args[0][1]
        assert str(options[-1]) == "staging (uninitialized)"


class TestWorkloadSelection:
    """Tests for selecting and initializing workloads."""

    def test_prompts_when_no_names(self):
        h = _Harness(store=_make_store(workloads=("fe",)))
        h.prompter.select_many.return_value = ["fe"]
        h.build().run()
        options = h.prompter.select_many.call_args[0][1]
        assert [str(o) for o in options] == ["fe", "be (uninitialized)", "worker (uninitialized)"]
        assert h.executed() == ["fe"]

    def test_no_workspace_workloads_to_select(self):
        h = _Harness(workspace=_make_workspace(workloads=()))
        with pytest.raises(DeployError, match="select service or job"):
            h.build().run()

    def test_named_uninitialized_workload_is_initialized(self):
        h = _Harness(store=_make_store(workloads=("fe",)))
        h.build(names=["be"]).run()
        created = h.store.create_workload.call_args[0][0]
        assert created.name == "be"
        assert created.app == APP
        h.prompter.confirm.assert_not_called()
        assert h.executed() == ["be"]

    def test_init_wkld_false_rejects_named_uninitialized(self):
        h = _Harness(store=_make_store(workloads=("fe",)))
        with pytest.raises(WorkloadNotInitializedError):
            h.build(names=["be"], init_wkld=False).run()
        h.store.create_workload.assert_not_called()

    def test_all_with_init_wkld_false_skips_uninitialized(self):
        h = _Harness(store=_make_store(workloads=("fe", "be")))
        h.build(names=["fe/1"], deploy_all=True, init_wkld=False).run()
        assert h.executed() == ["fe", "be"]
        h.store.create_workload.assert_not_called()

    def test_all_initializes_uninitialized_by_default(self):
        h = _Harness(store=_make_store(workloads=("fe",)))
        h.build(deploy_all=True).run()
        created = sorted(c[0][0].name for c in h.store.create_workload.call_args_list)
        assert created == ["be", "worker"]

    def test_unrecognized_type_on_init(self):
        h = _Harness(
            store=_make_store(workloads=()),
            workspace=_make_workspace(types={"fe": "Mainframe Batch"}),
        )
        with pytest.raises(UnrecognizedWorkloadTypeError, match="in manifest for workload fe"):
            h.build(names=["fe"]).run()

    def test_job_noun_in_errors(self):
        store = _make_store(workloads=())
        h = _Harness(store=store, workspace=_make_workspace(types={"report": SCHEDULED_JOB}))
        h.command("report").validate.side_effect = ShipyardError("no schedule")
        with pytest.raises(DeployError, match="validate job deploy for report"):
            h.build(names=["report"]).run()

    def test_workload_listings_are_cached(self):
        h = _Harness()
        orchestrator = h.build(deploy_all=True, env=None)
        orchestrator.run()
        assert h.store.list_workloads.call_count == 1
        assert h.workspace.list_workloads.call_count == 1
        assert h.workspace.list_environments.call_count == 1


class TestLogPlan:
    """Tests for the plan summary."""

    def test_summary_for_multiple_groups(self, capsys):
        h = _Harness()
        h.build(names=["fe/1", "be/2", "worker"]).run()
        out = capsys.readouterr().out
        assert "Will deploy 3 workloads to test in 3 groups:" in out
        assert "  1. fe" in out
        assert "  3. worker" in out

    def test_no_summary_for_single_workload(self, capsys):
        h = _Harness()
        h.build(names=["fe"]).run()
        assert "Will deploy" not in capsys.readouterr().out

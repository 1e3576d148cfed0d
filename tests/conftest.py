# Shared pytest fixtures
from __future__ import annotations
import logging
import tempfile
from pathlib import Path
import pytest

from resource_forge.logging.init import LOGGER_NAME, reset_logging


@pytest.fixture(autouse=True)
def _clean_logging():
    # setup_logging() は propagate=False にするため caplog 用に毎回戻す
    reset_logging()
    yield
    reset_logging()
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    monkeypatch.delenv("RESOURCE_FORGE_CONFIG", raising=False)
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """inputs:
  clients: ./data/clients.csv
  workers: ./data/workers.csv
  tasks: ./data/tasks.csv
output_directory: ./out
logs_directory: ./logs
keep_na_strings: [NA]
rules:
  - type: coRun
    name: Build and deploy together
    parameters:
      tasks: [T1, T2]
  - type: loadLimit
    name: Ops cap
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "forge.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


CLIENTS_CSV = """client_id,Client Name,Priority,tasks,group
C1,Acme,3,T1;T2,alpha
C2,Globex,5,T2,beta
"""

WORKERS_CSV = """WorkerID,WorkerName,Skills,AvailableSlots,MaxLoadPerPhase,WorkerGroup,QualificationLevel
W1,Ann,"python,sql","[1,2]",2,alpha,3
W2,Bob,ops,1-3,1,beta,2
"""

TASKS_CSV = """TaskID,TaskName,Category,Duration,RequiredSkills,PreferredPhases,MaxConcurrent
T1,Build,Build,2,python,1-2,1
T2,Deploy,Deploy,1,ops,[3],1
"""


@pytest.fixture()
def sample_csv_files(temp_workdir: Path) -> dict[str, Path]:
    """Clean clients / workers / tasks datasets (no error diagnostics)."""
    files = {}
    for label, content in (("clients", CLIENTS_CSV), ("workers", WORKERS_CSV), ("tasks", TASKS_CSV)):
        f = temp_workdir / "data" / f"{label}.csv"
        f.write_text(content, encoding="utf-8")
        files[label] = f
    return files


@pytest.fixture()
def broken_tasks_csv(sample_csv_files: dict[str, Path]) -> Path:
    """Replace tasks.csv with one that has a Duration of 0 (structural error)."""
    f = sample_csv_files["tasks"]
    f.write_text(TASKS_CSV.replace("T1,Build,Build,2,", "T1,Build,Build,0,"), encoding="utf-8")
    return f

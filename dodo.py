# -*- coding: utf-8 -*-
# pydoit task file, see https://pydoit.org/
# `pip install -e .[dev]`, then from this dir: `doit list`, `doit test_logic -k poller`

from doit.action import CmdAction

PACKAGE_DIR = "src/tekmatic"
FORMAT_TARGETS = [PACKAGE_DIR, "test/", "dodo.py"]

SPEED_MARKERS = {
    "": None,
    "all": None,
    "slow": "slow",
    "fast": "not slow",
}


def _pytest_params():
    """doit params shared by the test tasks."""
    return [
        {"name": "keyword", "short": "k", "default": ""},
        {"name": "speed", "short": "s", "default": ""},
        {"name": "last_failed", "short": "l", "default": False, "type": bool},
        {"name": "print_logs", "short": "p", "default": False, "type": bool},
    ]


def _pytest(test_dir, keyword, speed, last_failed, print_logs, marker=None):
    if speed not in SPEED_MARKERS:
        raise ValueError(f"Unknown speed '{speed}', use one of {sorted(SPEED_MARKERS)}")
    markers = [m for m in (marker, SPEED_MARKERS[speed]) if m]

    cmd = ["pytest", "--color=yes", "-vv"]
    if print_logs:
        cmd.append("--capture=no")
    if last_failed:
        cmd.append("--lf")
    if keyword:
        cmd.extend(["-k", f'"{keyword}"'])
    if markers:
        cmd.extend(["-m", '"' + " and ".join(markers) + '"'])
    cmd.append(test_dir)
    return " ".join(cmd)


def task_install():
    """Install tekmatic in editable mode with test and dev tools"""
    return {
        "actions": ["pip install -e .[test,dev]"],
        "verbosity": 2,
    }


def task_test_logic():
    """Run the mock-controller suite in test/logic/ (no hardware needed).

    -k TEXT   only tests matching the keyword expression
    -s SPEED  slow | fast | all (concurrency tests are marked slow)
    -l        rerun only the tests that failed last time
    -p        print loguru output instead of capturing it
    """

    def cmd(keyword, speed, last_failed, print_logs):
        return _pytest("test/logic/", keyword, speed, last_failed, print_logs)

    return {
        "actions": [CmdAction(cmd)],
        "params": _pytest_params(),
        "verbosity": 2,
    }


def task_test_hardware():
    """Run test/hardware/ against a physical slot controller.

    --port PORT  serial port of the controller (sets TEKMATIC_TEST_PORT);
                 without it every hardware test is skipped
    plus the -k / -s / -l / -p options of test_logic
    """

    def cmd(port, keyword, speed, last_failed, print_logs):
        run = _pytest(
            "test/hardware/", keyword, speed, last_failed, print_logs, "hardware"
        )
        return f"TEKMATIC_TEST_PORT={port} {run}" if port else run

    return {
        "actions": [CmdAction(cmd)],
        "params": [{"name": "port", "long": "port", "default": ""}] + _pytest_params(),
        "verbosity": 2,
    }


def task_format():
    """Sort imports and format the package, tests and this file with ruff"""
    actions = []
    for target in FORMAT_TARGETS:
        actions.append(f"ruff check --select I --fix {target}")
        actions.append(f"ruff format {target}")
    return {
        "actions": actions,
        "verbosity": 2,
    }

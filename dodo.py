"""
doit tasks for testing varinfer.
Run with: doit
"""

import sys
from pathlib import Path

# Python test files
PYTHON_TESTS = [
    'tests/test_lexer.py',
    'tests/test_parser.py',
    'tests/test_resolve.py',
    'tests/test_walk.py',
    'tests/test_driver.py',
]

ENGINE_TESTS = sorted(str(p) for p in Path('src/varinfer/variance/tests').glob('test_*.py'))
GOLDEN_FILES = sorted(str(p) for p in Path('src/varinfer/variance/tests/golden').glob('*'))
FIXTURES = sorted(str(p) for p in Path('tests/fixtures').glob('*.rs'))
ERROR_FIXTURES = sorted(str(p) for p in Path('tests/fixtures/errors').glob('*.rs'))


def run_pytest(paths):
    def run():
        import pytest
        return pytest.main(['-v'] + paths) == 0
    return run


def task_test_python():
    """Run front end and driver tests"""
    return {
        'actions': [run_pytest(PYTHON_TESTS)],
        'file_dep': PYTHON_TESTS + FIXTURES + ERROR_FIXTURES,
        'verbosity': 2,
    }


def task_test_engine():
    """Run variance engine tests, golden files included"""
    return {
        'actions': [run_pytest(ENGINE_TESTS)],
        'file_dep': ENGINE_TESTS + GOLDEN_FILES,
        'verbosity': 2,
    }


def task_dump_fixtures():
    """Print the variances of every fixture"""
    return {
        'actions': [f'{sys.executable} -m varinfer.driver --all {" ".join(FIXTURES)}'],
        'file_dep': FIXTURES,
        'verbosity': 2,
    }


def task_test():
    """Run all tests"""
    return {
        'actions': None,
        'task_dep': ['test_python', 'test_engine'],
    }

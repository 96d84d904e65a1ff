from .bench import compile_bench_steps
from .docs import docs_steps
from .fmt import format_steps
from .lint import lint_steps
from .test import test_steps

__all__ = ["compile_bench_steps", "docs_steps", "format_steps", "lint_steps", "test_steps"]

"""
Sandbox child-process entry point.

Launched by SandboxedExecutor as ``python -I -u _runner.py SNIPPET OPTIONS``
inside a throwaway working directory. Standard library only: the child
runs in isolated mode and cannot see the agentbox package.

Sequence:
1. Read the snippet and build the execution namespace (allowlisted
   builtins plus read-only proxies of a few pure modules).
2. Apply POSIX resource limits.
3. Seal the runner's own globals so no calling frame exposes host
   modules or the real builtins.
4. Execute. Any fault is written to stderr as "<Type>: <message>" and
   the process exits 1.
"""

import json
import math
import sys
import types

SAFE_BUILTIN_NAMES = (
    "abs", "all", "any", "ascii", "bin", "bool", "bytes", "callable", "chr",
    "complex", "dict", "divmod", "enumerate", "filter", "float", "format",
    "frozenset", "hash", "hex", "int", "isinstance", "issubclass", "iter",
    "len", "list", "map", "max", "min", "next", "object", "oct", "ord", "pow",
    "print", "range", "repr", "reversed", "round", "set", "slice", "sorted",
    "str", "sum", "tuple", "zip", "property", "staticmethod", "classmethod",
    "super", "__build_class__",
    # Exceptions user code may raise or catch
    "ArithmeticError", "AssertionError", "AttributeError", "Exception",
    "IndexError", "KeyError", "LookupError", "NameError", "NotImplementedError",
    "OverflowError", "RuntimeError", "StopIteration", "TypeError",
    "ValueError", "ZeroDivisionError",
)

MODULE_NAMES = (
    "math", "json", "statistics", "itertools", "functools", "collections",
    "re", "datetime", "random", "string", "decimal", "fractions",
)

HOST_NAMES = ("json", "math", "sys", "types")

EXIT_OK = 0
EXIT_FAULT = 1


def _module_proxy(module):
    """Expose only public, non-module attributes of a module."""
    public = {
        name: value
        for name, value in vars(module).items()
        if not name.startswith("_") and not isinstance(value, types.ModuleType)
    }
    return types.SimpleNamespace(**public)


def build_namespace():
    import builtins

    safe_builtins = {name: getattr(builtins, name) for name in SAFE_BUILTIN_NAMES}
    namespace = {"__builtins__": safe_builtins, "__name__": "__sandbox__"}
    for name in MODULE_NAMES:
        namespace[name] = _module_proxy(__import__(name))
    return namespace


def apply_limits(cpu_seconds, memory_bytes):
    if sys.platform == "win32":
        return
    import resource

    limits = [
        (resource.RLIMIT_CPU, cpu_seconds),
        (resource.RLIMIT_FSIZE, 0),
    ]
    if memory_bytes:
        limits.append((resource.RLIMIT_AS, memory_bytes))
    if hasattr(resource, "RLIMIT_NPROC"):
        limits.append((resource.RLIMIT_NPROC, 0))

    for which, value in limits:
        try:
            resource.setrlimit(which, (value, value))
        except (ValueError, OSError):
            # Not every platform lets an unprivileged process set every limit
            continue


def seal_globals(safe_builtins):
    """Strip host modules and builtins from this module's globals.

    User code can reach the frames that called it, so by the time it
    runs none of their globals may hold a module or the real builtins.
    Functions defined above keep the builtins they were created with.
    """
    scope = globals()
    for name in HOST_NAMES:
        scope.pop(name, None)
    scope["__builtins__"] = safe_builtins


def run(source, namespace, report):
    try:
        code = compile(source, "<sandbox>", "exec")
        exec(code, namespace)
    except BaseException as exc:
        message = str(exc)
        report(f"{type(exc).__name__}: {message}\n" if message
               else f"{type(exc).__name__}\n")
        return EXIT_FAULT
    return EXIT_OK


def main(argv):
    snippet_path, options = argv[1], json.loads(argv[2])
    with open(snippet_path, encoding="utf-8") as f:
        source = f.read()

    namespace = build_namespace()
    apply_limits(
        cpu_seconds=int(math.ceil(options.get("cpu_seconds", 10))),
        memory_bytes=options.get("memory_bytes"),
    )
    report = sys.stderr.write
    seal_globals(namespace["__builtins__"])
    return run(source, namespace, report)


if __name__ == "__main__":
    # sys.exit is looked up before main() seals the globals
    sys.exit(main(sys.argv))

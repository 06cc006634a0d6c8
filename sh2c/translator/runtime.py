"""
Target-side process orchestration runtime.

C helper functions that generated programs call at run time: single
command execution, N-stage pipe chains, detached background jobs, file
predicates and a few small utilities. The translator records which helpers
a script needs; :func:`render_program` emits a forward declaration and a
definition for each of those (and their dependencies) exactly once, in
``HELPER_ORDER``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple

from .c_syntax import c_string

INCLUDES = (
    "errno.h",
    "signal.h",
    "stdbool.h",
    "stdio.h",
    "stdlib.h",
    "string.h",
    "sys/stat.h",
    "sys/types.h",
    "sys/wait.h",
    "unistd.h",
)


@dataclass(frozen=True)
class RuntimeHelper:
    """One C helper function."""

    name: str
    declaration: str
    definition: str
    requires: Tuple[str, ...] = ()


WAIT_STATUS = RuntimeHelper(
    name="wait_status",
    declaration="static int sh2c_wait_status(pid_t pid);",
    definition=r"""
// Wait for a child and map its outcome to a shell exit code.
// Termination by a signal counts as 127.
static int sh2c_wait_status(pid_t pid) {
    int status;
    while (waitpid(pid, &status, 0) < 0) {
        if (errno != EINTR) {
            return 127;
        }
    }
    if (WIFEXITED(status)) {
        return WEXITSTATUS(status);
    }
    return 127;
}
""",
)

RUN_COMMAND = RuntimeHelper(
    name="run_command",
    declaration="static int sh2c_run_command(const char* command);",
    definition=r"""
// Run one command through the shell and wait for it.
static int sh2c_run_command(const char* command) {
    fflush(NULL);
    pid_t pid = fork();
    if (pid < 0) {
        perror("sh2c: fork");
        return 127;
    }
    if (pid == 0) {
        execl(SH2C_SHELL, "sh", "-c", command, (char*) NULL);
        _exit(127);
    }
    return sh2c_wait_status(pid);
}
""",
    requires=("wait_status",),
)

PIPE_CHAIN = RuntimeHelper(
    name="pipe_chain",
    declaration=(
        "static int sh2c_execute_pipe_chain(int count, const char* const commands[], int* statuses);"
    ),
    definition=r"""
// Undo a partially built pipe chain: close every opened pipe end, then
// terminate and reap every child spawned so far.
static void sh2c_abort_pipe_chain(pid_t* pids, int spawned, int (*pipes)[2], int opened) {
    for (int k = 0; k < opened; ++k) {
        close(pipes[k][0]);
        close(pipes[k][1]);
    }
    for (int k = 0; k < spawned; ++k) {
        kill(pids[k], SIGTERM);
        while (waitpid(pids[k], NULL, 0) < 0 && errno == EINTR) {
        }
    }
    free(pids);
    free(pipes);
}

// Run commands[0] | commands[1] | ... | commands[count - 1].
// Stores each stage's exit code in statuses and returns the last one.
// Returns -1, leaving statuses untouched, if the chain cannot be set up.
static int sh2c_execute_pipe_chain(int count, const char* const commands[], int* statuses) {
    if (count <= 0 || commands == NULL) {
        return -1;
    }

    pid_t* pids = calloc((size_t) count, sizeof(pid_t));
    int (*pipes)[2] = NULL;
    if (count > 1) {
        pipes = calloc((size_t) (count - 1), sizeof(*pipes));
    }
    if (pids == NULL || (count > 1 && pipes == NULL)) {
        perror("sh2c: calloc");
        free(pids);
        free(pipes);
        return -1;
    }

    int opened = 0;
    for (; opened < count - 1; ++opened) {
        if (pipe(pipes[opened]) < 0) {
            perror("sh2c: pipe");
            sh2c_abort_pipe_chain(pids, 0, pipes, opened);
            return -1;
        }
    }

    fflush(NULL);
    for (int i = 0; i < count; ++i) {
        if (commands[i] == NULL) {
            sh2c_abort_pipe_chain(pids, i, pipes, opened);
            return -1;
        }
        pid_t pid = fork();
        if (pid < 0) {
            perror("sh2c: fork");
            sh2c_abort_pipe_chain(pids, i, pipes, opened);
            return -1;
        }
        if (pid == 0) {
            if (i > 0 && dup2(pipes[i - 1][0], STDIN_FILENO) < 0) {
                _exit(127);
            }
            if (i < count - 1 && dup2(pipes[i][1], STDOUT_FILENO) < 0) {
                _exit(127);
            }
            for (int k = 0; k < opened; ++k) {
                close(pipes[k][0]);
                close(pipes[k][1]);
            }
            execl(SH2C_SHELL, "sh", "-c", commands[i], (char*) NULL);
            _exit(127);
        }
        pids[i] = pid;
    }

    for (int k = 0; k < opened; ++k) {
        close(pipes[k][0]);
        close(pipes[k][1]);
    }

    int last_status = 127;
    for (int i = 0; i < count; ++i) {
        last_status = sh2c_wait_status(pids[i]);
        if (statuses != NULL) {
            statuses[i] = last_status;
        }
    }
    free(pids);
    free(pipes);
    return last_status;
}
""",
    requires=("wait_status",),
)

BACKGROUND = RuntimeHelper(
    name="background",
    declaration="static int sh2c_run_background(const char* command);",
    definition=r"""
// Start command in a new session via a double fork and return the job's
// pid. Only the short-lived intermediate process is waited for.
static int sh2c_run_background(const char* command) {
    int channel[2];
    if (pipe(channel) < 0) {
        perror("sh2c: pipe");
        return 0;
    }
    fflush(NULL);
    pid_t intermediate = fork();
    if (intermediate < 0) {
        perror("sh2c: fork");
        close(channel[0]);
        close(channel[1]);
        return 0;
    }
    if (intermediate == 0) {
        close(channel[0]);
        pid_t job = fork();
        if (job == 0) {
            close(channel[1]);
            setsid();
            execl(SH2C_SHELL, "sh", "-c", command, (char*) NULL);
            _exit(127);
        }
        if (job > 0 && write(channel[1], &job, sizeof(job)) != (ssize_t) sizeof(job)) {
            _exit(1);
        }
        _exit(job < 0 ? 1 : 0);
    }
    close(channel[1]);
    pid_t job = intermediate;
    if (read(channel[0], &job, sizeof(job)) != (ssize_t) sizeof(job)) {
        job = intermediate;
    }
    close(channel[0]);
    while (waitpid(intermediate, NULL, 0) < 0 && errno == EINTR) {
    }
    return (int) job;
}
""",
)

FILE_EXISTS = RuntimeHelper(
    name="file_exists",
    declaration="static bool sh2c_file_exists(const char* path);",
    definition=r"""
// test -e
static bool sh2c_file_exists(const char* path) {
    struct stat st;
    return stat(path, &st) == 0;
}
""",
)

IS_REG = RuntimeHelper(
    name="is_reg",
    declaration="static bool sh2c_is_reg(const char* path);",
    definition=r"""
// test -f
static bool sh2c_is_reg(const char* path) {
    struct stat st;
    return stat(path, &st) == 0 && S_ISREG(st.st_mode);
}
""",
)

IS_DIR = RuntimeHelper(
    name="is_dir",
    declaration="static bool sh2c_is_dir(const char* path);",
    definition=r"""
// test -d
static bool sh2c_is_dir(const char* path) {
    struct stat st;
    return stat(path, &st) == 0 && S_ISDIR(st.st_mode);
}
""",
)

ITOA = RuntimeHelper(
    name="itoa",
    declaration="static const char* sh2c_itoa(int value);",
    definition=r"""
// Decimal text of an int. Rotates through static buffers so several
// results can be used in one expression.
static const char* sh2c_itoa(int value) {
    static char buffers[4][24];
    static int next = 0;
    char* buffer = buffers[next];
    next = (next + 1) % 4;
    snprintf(buffer, sizeof(buffers[0]), "%d", value);
    return buffer;
}
""",
)

IMPORT_ENV = RuntimeHelper(
    name="import_env",
    declaration="static void sh2c_import_env(char* buffer, size_t size, const char* name);",
    definition=r"""
// Initialise a shell variable from the environment ("" when unset).
static void sh2c_import_env(char* buffer, size_t size, const char* name) {
    const char* value = getenv(name);
    snprintf(buffer, size, "%s", value != NULL ? value : "");
}
""",
)

HELPERS: Dict[str, RuntimeHelper] = {
    helper.name: helper
    for helper in (
        WAIT_STATUS,
        RUN_COMMAND,
        PIPE_CHAIN,
        BACKGROUND,
        FILE_EXISTS,
        IS_REG,
        IS_DIR,
        ITOA,
        IMPORT_ENV,
    )
}

HELPER_ORDER: Tuple[str, ...] = tuple(HELPERS)


def resolve_helpers(used: Iterable[str]) -> List[RuntimeHelper]:
    """
    Expand helper names with their dependencies.

    Args:
        used: Helper names recorded during translation

    Returns:
        Helpers in HELPER_ORDER, each at most once

    Raises:
        KeyError: If a name is not a known helper
    """
    required: set[str] = set()
    pending = list(used)
    while pending:
        name = pending.pop()
        if name in required:
            continue
        required.add(name)
        pending.extend(HELPERS[name].requires)
    return [HELPERS[name] for name in HELPER_ORDER if name in required]


def render_preamble(helpers: Sequence[RuntimeHelper], shell_path: str = "/bin/sh") -> List[str]:
    lines = [
        "// Generated by sh2c. Do not edit.",
        "",
        "#define _POSIX_C_SOURCE 200809L",
        "",
    ]
    lines.extend(f"#include <{header}>" for header in INCLUDES)
    lines.extend([
        "",
        f"#define SH2C_SHELL {c_string(shell_path)}",
        "",
        "int sh2c_last_status = 0;  // $?",
        "int sh2c_last_bg_pid = 0;  // $!",
    ])
    if helpers:
        lines.append("")
        lines.extend(helper.declaration for helper in helpers)
    return lines


def render_program(
    body: Sequence[str],
    variables: Sequence[Tuple[str, str]],
    used_helpers: Iterable[str],
    *,
    indent_unit: str = "    ",
    variable_size: int = 256,
    shell_path: str = "/bin/sh",
) -> str:
    """
    Assemble a complete C program.

    Args:
        body: Translated statement lines, already indented
        variables: (shell name, C identifier) pairs in first-use order
        used_helpers: Helper names recorded during translation
        indent_unit: Indentation of one nesting level
        variable_size: Size of each variable's char buffer
        shell_path: Interpreter used by the runtime helpers

    Returns:
        The C source text
    """
    helpers = resolve_helpers(used_helpers)
    lines = render_preamble(helpers, shell_path)
    lines.extend(["", "int main(void) {"])
    for name, identifier in variables:
        lines.append(f"{indent_unit}char {identifier}[{variable_size}];")
    for name, identifier in variables:
        lines.append(
            f"{indent_unit}sh2c_import_env({identifier}, sizeof({identifier}), {c_string(name)});"
        )
    if variables and body:
        lines.append("")
    lines.extend(body)
    lines.append(f"{indent_unit}return 0;")
    lines.append("}")
    for helper in helpers:
        lines.append(helper.definition.rstrip("\n"))
    return "\n".join(lines) + "\n"

STATE_DIR_NAME = ".git_action_runner"
CONFIG_FILE = "config.yaml"

APP_NAME = "git-action-runner"
PROMPT_DIR_ENV = "GIT_ACTION_RUNNER_PROMPT_DIR"
LOG_LEVEL_ENV = "GIT_ACTION_RUNNER_LOG_LEVEL"

DEFAULT_AGENT_COMMAND = "claude"
DEFAULT_AGENT_MODEL = "sonnet"
DEFAULT_AGENT_TOOLS = "Bash,Read,Grep,Glob"
DEFAULT_OUTPUT_LANGUAGE = "English"

DEFAULT_AGENT_TIMEOUT_SECONDS = 5 * 60
DEFAULT_PUSH_TIMEOUT_SECONDS = 2 * 60
DEFAULT_INSPECT_TIMEOUT_SECONDS = 30

# Seconds to wait for a killed process to be reaped.
KILL_GRACE_SECONDS = 5

PR_PLACEHOLDER_TITLE = "WIP: Analyzing changes..."
PR_PLACEHOLDER_BODY = "Analyzing changes and generating description..."

NO_UPSTREAM_MARKER = "no upstream branch"
DEFAULT_BASE_BRANCH = "main"

CANCELLED_MESSAGE = "Operation cancelled by user"
AUTO_FIXED_NOTE = f"[{APP_NAME}] Placeholder PR content detected and auto-fixed."

PR_VIEW_FIELDS = "number,url,title,body"
PR_STATUS_FIELDS = "url,number,state,title,headRefName,baseRefName"

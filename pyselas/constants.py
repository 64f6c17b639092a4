from __future__ import annotations

VERSION = "0.1.0"
CLIENT_INFO = f"pyselas/{VERSION}"

SUPABASE_URL = "https://lgwrsefyncubvpholtmh.supabase.co"
# Public anon key of the Selas project; app credentials carry the real authorization.
SUPABASE_KEY = (
    "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9."
    "eyJpc3MiOiJzdXBhYmFzZSIsInJlZiI6Imxnd3JzZWZ5bmN1YnZwaG9sdG1oIiwicm9sZSI6ImFub24iLCJpYXQiOjE2Njk0MDE0MzYsImV4cCI6MTk4NDk3NzQzNn0."
    "o-QO3JKyJ5E-XzWRPC9WdWHY8WjzEFRRnDRSflLzHsc"
)
RPC_PATH = "/rest/v1/rpc/"
REQUEST_TIMEOUT = 45.0

PUSHER_KEY = "ed00ed3037c02a5fd912"
PUSHER_CLUSTER = "eu"
JOB_CHANNEL_PREFIX = "job-"
RESULT_EVENT = "result"
CONNECTION_ESTABLISHED_EVENT = "pusher:connection_established"
JOB_RESULT_TIMEOUT = 300.0

STABLE_DIFFUSION_SERVICE_ID = "04cdf9c4-5338-4e32-9e63-e15b2150d7f9"
DEFAULT_WORKER_BRANCH = "prod"

# Parameters injected into every call; caller params never use these names.
PARAM_SECRET = "p_secret"
PARAM_APP_ID = "p_app_id"
PARAM_KEY = "p_key"
RESERVED_PARAMS = (PARAM_SECRET, PARAM_APP_ID, PARAM_KEY)

RPC_ECHO = "app_owner_echo"
RPC_GET_SUPER_USER = "app_owner_get_super_user"
RPC_CREATE_USER = "app_owner_create_user"
RPC_GET_USER_TOKEN_VALUE = "app_owner_get_user_token_value"
RPC_GET_USER_CREDITS = "app_owner_get_user_credits"
RPC_GET_TOKEN = "app_owner_get_token"
RPC_REVOKE_USER_TOKEN = "app_owner_revoke_user_token"
RPC_CREATE_USER_TOKEN = "app_owner_create_user_token"
RPC_ADD_USER_CREDITS = "app_owner_add_user_credits"
RPC_POST_JOB = "app_owner_post_job_admin"
RPC_GET_USER_JOB_HISTORY_DETAIL = "app_owner_get_user_job_history_detail"

ENV_PREFIX = "SELAS_"

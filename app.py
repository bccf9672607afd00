"""
app.py - minimal entrypoint for the Streamlit app

Run the app with:
    streamlit run app.py

Streamlit Cloud secrets are copied into environment variables first, so the
storage layer only ever reads os.environ. Then this module delegates to
household_budget.ui.dashboard.main().
"""
import os
import json as _json

import streamlit as _st

_SECRET_KEYS = (
    "GOOGLE_SHEET_ID",
    "GOOGLE_SERVICE_ACCOUNT_JSON",
    "GOOGLE_SERVICE_ACCOUNT_FILE",
    "HOUSEHOLD_USER_ID",
    "HOUSEHOLD_DATA_FILE",
)


def _export_secrets():
    try:
        secrets = dict(_st.secrets)
    except Exception:
        # no secrets.toml outside Streamlit Cloud; the error type varies by release
        return
    for key in _SECRET_KEYS:
        if secrets.get(key) and key not in os.environ:
            os.environ[key] = str(secrets[key])
    # standard table-style service account secret: [gcp_service_account] ...fields...
    if "GOOGLE_SERVICE_ACCOUNT_JSON" not in os.environ and secrets.get("gcp_service_account"):
        os.environ["GOOGLE_SERVICE_ACCOUNT_JSON"] = _json.dumps(dict(secrets["gcp_service_account"]))


_export_secrets()

from household_budget.ui import dashboard  # noqa: E402


def main():
    dashboard.main()


if __name__ == "__main__":
    main()

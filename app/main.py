from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd
import streamlit as st

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app.helpers import card_details, reasons_to_text
from src.io.identity import AuthSession, IdentityClient, IdentityError
from src.io.record_store import ConfigurationError, RecordStore, RecordStoreError, StoreSettings
from src.io.snapshotting import get_latest_snapshot_path, load_snapshot_changes, read_snapshot
from src.profile.schema import (
    CAREER_INTERESTS,
    CLASSIFICATIONS,
    MAJORS,
    ProfileValidationError,
    UserProfile,
    validate_profile_payload,
)
from src.rank.matcher import evaluate_scholarships, rank_matches
from src.rank.weights import load_bonus_weights

PROCESSED_DIR = ROOT_DIR / "data" / "processed"
PROFILE_PATH = PROCESSED_DIR / "student_profile.json"
WEIGHTS_PATH = PROCESSED_DIR / "match_weights.json"
OFFLINE_USER_ID = "local"


@dataclass
class SessionContext:
    """Per-browser-session state, passed explicitly to each view."""

    auth_mode: str = "register"
    pending_email: str | None = None
    pending_password: str | None = None
    session: AuthSession | None = None
    profile: UserProfile | None = None
    message: str | None = None
    results: list[dict[str, Any]] = field(default_factory=list)

    @property
    def is_signed_in(self) -> bool:
        return self.session is not None

    def sign_out(self) -> None:
        self.pending_email = None
        self.pending_password = None
        self.session = None
        self.profile = None
        self.message = None
        self.results = []


def _get_context() -> SessionContext:
    if "context" not in st.session_state:
        st.session_state.context = SessionContext()
    return st.session_state.context


def _store_settings() -> StoreSettings | None:
    try:
        return StoreSettings.from_env()
    except ConfigurationError:
        return None


def _load_profile_from_disk() -> UserProfile | None:
    if not PROFILE_PATH.exists():
        return None
    return UserProfile.from_mapping(json.loads(PROFILE_PATH.read_text(encoding="utf-8")))


def _save_profile_to_disk(profile: UserProfile) -> None:
    PROCESSED_DIR.mkdir(parents=True, exist_ok=True)
    PROFILE_PATH.write_text(json.dumps(profile.to_record(), indent=2, sort_keys=True), encoding="utf-8")


@st.cache_data(ttl=300, show_spinner=False)
def _load_catalog_cached(store_url: str, store_key: str) -> list[dict[str, Any]]:
    with RecordStore.from_settings(StoreSettings(url=store_url, service_key=store_key)) as store:
        return store.fetch_scholarships()


def _load_catalog(settings: StoreSettings | None) -> list[dict[str, Any]]:
    if settings is not None:
        return _load_catalog_cached(settings.url, settings.service_key)
    latest = get_latest_snapshot_path(PROCESSED_DIR)
    if latest is None:
        raise FileNotFoundError("No catalog snapshot found. Run scripts/fetch_catalog.py first.")
    return read_snapshot(latest)


def _render_catalog_changes() -> None:
    latest = get_latest_snapshot_path(PROCESSED_DIR)
    changes = load_snapshot_changes(latest) if latest is not None else None
    if changes is None:
        return
    st.sidebar.caption(
        f"Since last snapshot: {len(changes.get('added') or [])} added, "
        f"{len(changes.get('removed') or [])} removed, {len(changes.get('changed') or [])} changed"
    )


def _render_auth(context: SessionContext, settings: StoreSettings) -> None:
    identity = IdentityClient.from_settings(settings)
    try:
        mode = st.radio(
            "Account",
            ["register", "login"],
            index=0 if context.auth_mode == "register" else 1,
            format_func=lambda value: "Register" if value == "register" else "Log in",
            horizontal=True,
        )
        context.auth_mode = mode

        if mode == "register" and context.pending_email is None:
            with st.form("register"):
                name = st.text_input("Name")
                email = st.text_input("Institutional email", placeholder="your.email@spelman.edu")
                password = st.text_input("Password", type="password")
                if st.form_submit_button("Register", type="primary"):
                    try:
                        identity.register(name, email, password)
                    except IdentityError as exc:
                        st.error(str(exc))
                    else:
                        context.pending_email = email
                        context.pending_password = password
                        context.message = "Verification code sent to your email!"
                        st.rerun()
        elif mode == "register":
            st.info(context.message or f"Enter the code sent to {context.pending_email}.")
            code = st.text_input("Verification code", max_chars=6)
            verify_col, resend_col = st.columns(2)
            if verify_col.button("Verify", type="primary"):
                try:
                    identity.verify_code(context.pending_email, code)
                    context.session = identity.login(context.pending_email, context.pending_password or "")
                except IdentityError as exc:
                    st.error(str(exc))
                else:
                    context.pending_password = None
                    context.message = "Email verified successfully!"
                    st.rerun()
            if resend_col.button("Resend code"):
                try:
                    identity.send_code(context.pending_email)
                except IdentityError as exc:
                    st.error(str(exc))
                else:
                    st.success("A new code is on its way.")
        else:
            with st.form("login"):
                email = st.text_input("Email")
                password = st.text_input("Password", type="password")
                if st.form_submit_button("Log in", type="primary"):
                    try:
                        context.session = identity.login(email, password)
                    except IdentityError as exc:
                        st.error(str(exc))
                    else:
                        context.message = "Login successful!"
                        st.rerun()
    finally:
        identity.close()


def _load_profile(context: SessionContext, settings: StoreSettings | None) -> None:
    if context.profile is not None:
        return
    if settings is None or context.session is None:
        context.profile = _load_profile_from_disk()
        return
    try:
        with RecordStore.from_settings(settings) as store:
            context.profile = store.get_profile(context.session.user_id)
    except RecordStoreError as exc:
        st.warning(f"Could not load your profile: {exc}")


def _render_profile_form(context: SessionContext, settings: StoreSettings | None) -> None:
    current = context.profile or UserProfile(name=context.session.name if context.session else "")
    st.header("Create Your Profile")
    st.caption("Tell us about yourself to find scholarships that match your qualifications")
    with st.form("profile"):
        name = st.text_input("Name", value=current.name)
        major = st.selectbox(
            "Major",
            MAJORS,
            index=MAJORS.index(current.major) if current.major in MAJORS else None,
            placeholder="Select your major",
        )
        gpa = st.number_input("GPA", min_value=0.0, max_value=4.0, value=current.gpa or 0.0, step=0.01)
        grad_year = st.number_input(
            "Graduation year",
            min_value=2000,
            max_value=2100,
            value=current.grad_year or 2027,
            step=1,
        )
        classification = st.selectbox(
            "Classification",
            CLASSIFICATIONS,
            index=CLASSIFICATIONS.index(current.classification)
            if current.classification in CLASSIFICATIONS
            else None,
            placeholder="Select your classification",
        )
        interests = st.multiselect(
            "Career interests",
            CAREER_INTERESTS,
            default=[interest for interest in current.selected_interests if interest in CAREER_INTERESTS],
        )
        submitted = st.form_submit_button("Save profile", type="primary")

    if not submitted:
        return
    payload = {
        "id": context.session.user_id if context.session else OFFLINE_USER_ID,
        "name": name,
        "major": major,
        "gpa": gpa,
        "gradYear": grad_year,
        "classification": classification,
        "selectedInterests": interests,
    }
    try:
        profile = validate_profile_payload(payload)
        if settings is not None and context.session is not None:
            with RecordStore.from_settings(settings) as store:
                profile = store.upsert_profile(profile)
        else:
            _save_profile_to_disk(profile)
    except (ProfileValidationError, RecordStoreError) as exc:
        st.error(str(exc))
        return
    context.profile = profile
    context.results = []
    st.success("Profile created successfully!")
    st.rerun()


def _render_card(result: dict[str, Any]) -> None:
    details = card_details(result)
    with st.container(border=True):
        title_col, badge_col = st.columns([4, 1])
        title_col.subheader(details["title"])
        if details["badge"]:
            badge_col.metric("Match", details["badge"])
        meta = st.columns(4)
        meta[0].write(f"Amount: {details['amount']}")
        meta[1].write(f"Deadline: {details['deadline']}")
        meta[2].write(f"Essay Required? {details['essay_required']}")
        meta[3].write(f"Recommendation Required? {details['recommendation_required']}")
        if details["previous_winners"]:
            st.caption(f"Students who won this: {details['previous_winners']}")
        if details["application_link"]:
            st.link_button("Apply Now", details["application_link"])


def _render_dashboard(context: SessionContext, settings: StoreSettings | None) -> None:
    profile = context.profile
    if profile is None:
        return
    st.header(f"Welcome Back, {profile.name or 'Student'}!")
    st.caption(
        f"{profile.classification} • {profile.major} • GPA: {profile.gpa} • "
        f"Graduation Year: {profile.grad_year}"
    )

    refresh = st.button("Refresh matches")
    if refresh or not context.results:
        with st.spinner("Loading scholarships..."):
            try:
                catalog = _load_catalog(settings)
            except (FileNotFoundError, RecordStoreError) as exc:
                st.error(f"Error fetching scholarships: {exc}")
                return
            context.results = evaluate_scholarships(catalog, profile, load_bonus_weights(WEIGHTS_PATH))

    ranked = rank_matches(context.results)
    if not ranked:
        st.subheader("No matching scholarships found")
        st.write("Try updating your profile or check back later for new scholarships.")
    for result in ranked:
        _render_card(result)

    excluded = [result for result in context.results if not result["qualifies"]]
    if excluded:
        with st.expander(f"Scholarships you don't qualify for yet ({len(excluded)})"):
            excluded_df = pd.DataFrame(
                {
                    "scholarship": [card_details(result)["title"] for result in excluded],
                    "deadline": [result.get("deadline") for result in excluded],
                    "reasons": [reasons_to_text(result["disqualificationReasons"]) for result in excluded],
                }
            )
            st.dataframe(excluded_df, use_container_width=True, hide_index=True)


def main() -> None:
    st.set_page_config(page_title="Scholarix", layout="wide")
    st.title("Scholarix")
    context = _get_context()
    settings = _store_settings()

    if settings is None:
        st.sidebar.info("Record store not configured; using the local profile and latest catalog snapshot.")
        _render_catalog_changes()
    elif not context.is_signed_in:
        _render_auth(context, settings)
        return
    else:
        st.sidebar.write(f"Signed in as {context.session.email}")
        if st.sidebar.button("Log out"):
            context.sign_out()
            st.rerun()

    if context.message:
        st.sidebar.success(context.message)

    _load_profile(context, settings)
    if context.profile is None or not context.profile.is_complete:
        if context.profile is not None:
            st.info("Add your major, GPA, graduation year and at least one career interest to see matches.")
        _render_profile_form(context, settings)
        return
    if st.sidebar.toggle("Edit profile", value=False):
        _render_profile_form(context, settings)
    _render_dashboard(context, settings)


if __name__ == "__main__":
    main()

"""
Sign-in via Supabase Auth (Google OAuth or email/password), with a guest mode
when Supabase is not configured. Only identity comes from Supabase; entries
stay in the local per-user store.
"""
from __future__ import annotations

import logging
from typing import Dict, Optional
from urllib.parse import urlencode

import streamlit as st
from supabase import Client, create_client

from config import GUEST_USER_IDS, OAUTH_REDIRECT_URL

logger = logging.getLogger(__name__)

GUEST_USER = {"id": "guest", "email": "guest@example.com"}
DEMO_USER = {"id": "demo@example.com", "email": "demo@example.com"}


def init_supabase() -> Optional[Client]:
    """Create the Supabase client from Streamlit secrets, or None when not configured."""
    try:
        url = st.secrets["SUPABASE_URL"]
        key = st.secrets["SUPABASE_ANON_KEY"]
        return create_client(url, key)
    except Exception as e:
        logger.warning("Supabase initialization failed, running in guest mode: %s", e)
        return None


def oauth_authorize_url(supabase_url: str, redirect_url: str = OAUTH_REDIRECT_URL, provider: str = "google") -> str:
    """
    >>> oauth_authorize_url("https://abc.supabase.co", "http://localhost:8501")
    'https://abc.supabase.co/auth/v1/authorize?provider=google&redirect_to=http%3A%2F%2Flocalhost%3A8501&flow_type=pkce'
    """
    query = urlencode({"provider": provider, "redirect_to": redirect_url, "flow_type": "pkce"})
    return f"{supabase_url.rstrip('/')}/auth/v1/authorize?{query}"


def is_guest(user: Optional[Dict[str, str]]) -> bool:
    return bool(user) and user.get("id") in GUEST_USER_IDS


def _user_dict(user) -> Dict[str, str]:
    return {"id": user.id, "email": user.email}


def handle_oauth_callback(supabase: Optional[Client]) -> None:
    """Exchange an OAuth ?code= for a session, then restore the session on reruns."""
    if supabase is None:
        return
    if "code" in st.query_params:
        code = st.query_params["code"]
        try:
            res = supabase.auth.exchange_code_for_session({"auth_code": code})
            if res.user:
                st.session_state.user = _user_dict(res.user)
                st.session_state.session = res.session
                st.success(f"Logged in as {res.user.email}")
        except Exception as e:
            logger.warning("OAuth code exchange failed: %s", e)
            st.error(f"Failed to exchange code: {e}")
        del st.query_params["code"]

    session = st.session_state.get("session")
    if session:
        try:
            supabase.auth.set_session(session.access_token, session.refresh_token)
        except Exception as e:
            logger.warning("Could not restore Supabase session: %s", e)


def _login_tabs(supabase: Client) -> None:
    tab1, tab2 = st.tabs(["Email Login", "Sign Up"])

    with tab1:
        login_email = st.text_input("Email", key="login_email")
        login_password = st.text_input("Password", type="password", key="login_password")
        if st.button("Login", key="login_btn"):
            if login_email and login_password:
                try:
                    response = supabase.auth.sign_in_with_password({"email": login_email, "password": login_password})
                    st.session_state.user = _user_dict(response.user)
                    st.session_state.session = response.session
                    st.rerun()
                except Exception as e:
                    logger.warning("Login failed for %s: %s", login_email, e)
                    st.error(f"Login failed: {e}")
            else:
                st.error("Please enter both email and password.")

    with tab2:
        signup_email = st.text_input("Email", key="signup_email")
        signup_password = st.text_input("Password", type="password", key="signup_password")
        signup_confirm = st.text_input("Confirm Password", type="password", key="signup_confirm")
        if st.button("Sign Up", key="signup_btn"):
            if not (signup_email and signup_password and signup_confirm):
                st.error("Please fill in all fields.")
            elif signup_password != signup_confirm:
                st.error("Passwords don't match.")
            else:
                try:
                    response = supabase.auth.sign_up({"email": signup_email, "password": signup_password})
                    st.session_state.user = _user_dict(response.user)
                    st.session_state.session = response.session
                    st.rerun()
                except Exception as e:
                    logger.warning("Sign up failed for %s: %s", signup_email, e)
                    st.error(f"Sign up failed: {e}")


def render_auth_ui(supabase: Optional[Client]) -> Optional[Dict[str, str]]:
    """Render sign-in options or the signed-in header; returns the current user."""
    st.session_state.setdefault("user", None)
    st.session_state.setdefault("session", None)

    if supabase is None and st.session_state.user is None:
        st.session_state.user = dict(GUEST_USER)

    user = st.session_state.user
    if user is None:
        st.markdown("### Welcome to WeightWise")
        st.markdown("Track your weight and body composition, and see where it's heading.")

        auth_url = oauth_authorize_url(st.secrets["SUPABASE_URL"])
        st.markdown(f"[**Login with Google**]({auth_url})")
        st.markdown("---")

        _login_tabs(supabase)

        st.markdown("---")
        cols = st.columns(2)
        with cols[0]:
            if st.button("Continue as Guest", key="guest_btn", use_container_width=True):
                st.session_state.user = dict(GUEST_USER)
                st.rerun()
        with cols[1]:
            if st.button("Try the demo", key="demo_btn", use_container_width=True):
                st.session_state.user = dict(DEMO_USER)
                st.rerun()
        return None

    col1, col2 = st.columns([3, 1])
    with col1:
        st.markdown(f"### Welcome, {user.get('email', 'Unknown')}")
    with col2:
        if supabase is not None and st.button("Logout", use_container_width=True):
            if not is_guest(user):
                try:
                    supabase.auth.sign_out()
                except Exception as e:
                    logger.warning("Sign out failed: %s", e)
            st.session_state.clear()
            st.rerun()
    return user

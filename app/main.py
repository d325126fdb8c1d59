"""
Streamlit Frontend for Apartment Manager

The user interface: a login page, then a home page leading to the
user manager and the apartment manager.

DESIGN PRINCIPLES:
1. The UI only collects input and shows results
2. Every action is one flow call; errors are shown, never hidden
3. Nothing is saved without an explicit button press

Run with:
    streamlit run app/main.py
"""

import os
import tempfile

import streamlit as st

from apartment_manager.audit import create_correlation_id
from apartment_manager.orchestrator import ApartmentFlow, UserFlow, create_app_components
from apartment_manager.services.storage import StorageError
from apartment_manager.services.transfer import describe_failure, supported_extensions
from apartment_manager.validation import InputValidationError


st.set_page_config(
    page_title="Apartment Management System",
    page_icon="🏢",
    layout="wide",
)


@st.cache_resource
def get_components():
    """Get or create application components (cached for the server's lifetime)."""
    return create_app_components()


def main():
    """Main application entry point."""
    apartment_flow, user_flow, _ = get_components()

    if "logged_in_as" not in st.session_state:
        st.session_state.logged_in_as = None
    if "page" not in st.session_state:
        st.session_state.page = "home"

    if st.session_state.logged_in_as is None:
        render_login_page(user_flow)
        return

    st.sidebar.title("🏢 Apartment Manager")
    st.sidebar.markdown(f"Logged in as **{st.session_state.logged_in_as}**")
    if st.sidebar.button("Log out"):
        st.session_state.logged_in_as = None
        st.rerun()

    if st.session_state.page == "users":
        render_user_manager(user_flow)
    elif st.session_state.page == "apartments":
        render_apartment_manager(apartment_flow)
    else:
        render_home_page()


def render_login_page(user_flow: UserFlow):
    """Render the login form."""
    st.title("Apartment Management System")

    with st.form("login"):
        username = st.text_input("Username:")
        password = st.text_input("Password:", type="password")
        submitted = st.form_submit_button("Login")

    if submitted:
        if user_flow.authenticate(username, password, correlation_id=create_correlation_id()):
            st.session_state.logged_in_as = username
            st.session_state.page = "home"
            st.rerun()
        else:
            st.error("invalid credentials")


def render_home_page():
    """Render the home page with the two managers."""
    st.title("Welcome to Apartment Management System")

    col1, col2 = st.columns(2)
    with col1:
        if st.button("USER MANAGER"):
            st.session_state.page = "users"
            st.rerun()
    with col2:
        if st.button("APARTMENT MANAGER"):
            st.session_state.page = "apartments"
            st.rerun()


def _back_button():
    if st.button("⬅️ Back"):
        st.session_state.page = "home"
        st.rerun()


def render_user_manager(user_flow: UserFlow):
    """Render the user list and the add/edit form."""
    st.title("User Manager")
    _back_button()

    users = [user_flow.user_at(i) for i in range(user_flow.count_users())]
    users = [u for u in users if u is not None]

    list_col, form_col = st.columns([1, 2])

    with list_col:
        options = [0] + [u.id for u in users]
        labels = {0: "➕ Add New"}
        labels.update({u.id: u.display_label() for u in users})
        selected_id = st.radio(
            "Users",
            options=options,
            format_func=lambda uid: labels[uid],
        )

    selected = next((u for u in users if u.id == selected_id), None)

    with form_col:
        st.subheader("User Details")
        with st.form(f"user_form_{selected_id}"):
            username = st.text_input("Username:", value=selected.username if selected else "")
            password = st.text_input(
                "Password:",
                value=selected.password if selected else "",
                type="password",
            )
            save = st.form_submit_button("💾 Save")

        if save:
            try:
                user_flow.save_user(selected_id, username, password)
                st.success("User saved")
                st.rerun()
            except (InputValidationError, StorageError) as e:
                st.error(str(e))

        confirm = st.checkbox("Confirm delete", key=f"confirm_user_{selected_id}")
        if st.button("🗑️ Delete", disabled=not confirm):
            try:
                user_flow.delete_user(selected_id)
                st.rerun()
            except (InputValidationError, StorageError) as e:
                st.error(str(e))


def render_apartment_manager(apartment_flow: ApartmentFlow):
    """Render the apartment list, edit form and import/export."""
    st.title("Apartment Manager")
    _back_button()

    apartments = [
        apartment_flow.apartment_at(i) for i in range(apartment_flow.count_apartments())
    ]
    apartments = [a for a in apartments if a is not None]

    list_col, form_col = st.columns([1, 2])

    with list_col:
        options = [""] + [a.unit_id for a in apartments]
        labels = {"": "➕ New apartment"}
        labels.update({a.unit_id: a.display_label() for a in apartments})
        selected_id = st.radio(
            "Apartments",
            options=options,
            format_func=lambda uid: labels[uid],
        )

    selected = apartment_flow.get_apartment(selected_id) if selected_id else None

    with form_col:
        st.subheader("Apartment Details")
        with st.form(f"apartment_form_{selected_id}"):
            unit_id = st.text_input("Apartment ID:", value=selected.unit_id if selected else "")
            owner = st.text_input("Owner:", value=selected.owner if selected else "")
            resident = st.text_input("Resident:", value=selected.resident if selected else "")
            same = st.checkbox(
                "Owner is Resident",
                value=selected.owner_is_resident if selected else False,
            )
            save = st.form_submit_button("💾 Save")

        if save:
            try:
                apartment_flow.save_apartment(unit_id, owner, resident, same)
                st.success("Apartment saved")
                st.rerun()
            except (InputValidationError, StorageError) as e:
                st.error(str(e))

        confirm = st.checkbox("Confirm delete", key=f"confirm_apartment_{selected_id}")
        if st.button("🗑️ Delete", disabled=not confirm):
            try:
                apartment_flow.delete_apartment(selected_id)
                st.rerun()
            except (InputValidationError, StorageError) as e:
                st.error(str(e))

    st.markdown("---")
    render_transfer_section(apartment_flow)


def render_transfer_section(apartment_flow: ApartmentFlow):
    """Import from and export to CSV / Excel."""
    import_col, export_col = st.columns(2)
    extensions = supported_extensions()

    with import_col:
        st.subheader("Import")
        uploaded = st.file_uploader(
            "CSV or Excel file",
            type=[ext.lstrip(".") for ext in extensions],
        )
        if uploaded and st.button("📂 Import"):
            suffix = os.path.splitext(uploaded.name)[1]
            with tempfile.TemporaryDirectory() as tmp:
                path = os.path.join(tmp, f"upload{suffix}")
                with open(path, "wb") as handle:
                    handle.write(uploaded.getvalue())
                try:
                    summary = apartment_flow.import_file(path)
                except Exception as e:
                    st.error(describe_failure(e) or f"Import failed: {e}")
                else:
                    st.success(f"Data imported ({summary.rows_imported} apartments)")

    with export_col:
        st.subheader("Export")
        extension = st.selectbox("Format", options=extensions)
        if st.button("💾 Export"):
            with tempfile.TemporaryDirectory() as tmp:
                path = os.path.join(tmp, f"apartments{extension}")
                try:
                    summary = apartment_flow.export_file(path)
                except Exception as e:
                    st.error(describe_failure(e) or f"Export failed: {e}")
                else:
                    with open(path, "rb") as handle:
                        st.session_state.export_bytes = handle.read()
                    st.session_state.export_name = os.path.basename(path)
                    st.success(f"Data exported ({summary.rows_exported} apartments)")

        if st.session_state.get("export_bytes"):
            st.download_button(
                "⬇️ Download",
                data=st.session_state.export_bytes,
                file_name=st.session_state.export_name,
            )


if __name__ == "__main__":
    main()

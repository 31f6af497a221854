"""
Streamlit Frontend for Jantrik

One page per collection plus a small home and settings page.

DESIGN PRINCIPLES:
1. Simple, clear interface
2. Explicit confirmation before anything destructive
3. Clear error messages that restate what is allowed
4. Visual feedback for every operation

The UI only talks to CollectionFlow:
- It never reads or writes storage itself
- Every add is saved before the page shows the new total
"""

import asyncio

import streamlit as st

from jantrik.activity import configure_logging, create_correlation_id
from jantrik.config import get_settings, validate_all_settings
from jantrik.models.collection import (
    COLLECTIONS,
    AmountTier,
    CollectionType,
    get_collection_config,
)
from jantrik.numbers import format_amount
from jantrik.orchestrator import (
    CollectionFlow,
    OperationInProgressError,
    create_app_components,
)
from jantrik.services.export import ExportError
from jantrik.services.storage import StorageError
from jantrik.validation import ValidationError


# Page configuration
st.set_page_config(
    page_title="Jantrik",
    page_icon="🔢",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .number-chip {
        font-family: monospace;
        font-size: 1.2em;
        font-weight: 600;
        padding: 6px 14px;
        border-radius: 6px;
        background-color: #f1f5f9;
    }
    .tier-high { color: #166534; background-color: #dcfce7; }
    .tier-medium { color: #1e40af; background-color: #dbeafe; }
    .tier-low { color: #1e293b; background-color: #f1f5f9; }
    .amount-badge {
        padding: 4px 12px;
        border-radius: 12px;
        font-weight: 600;
    }
</style>
""", unsafe_allow_html=True)


FLASH_KEY = "flash_message"

TIER_CLASSES = {
    AmountTier.HIGH: "tier-high",
    AmountTier.MEDIUM: "tier-medium",
    AmountTier.LOW: "tier-low",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_flow() -> CollectionFlow:
    """Get or create application components (cached)."""
    configure_logging(get_settings().app.log_level)
    return create_app_components(use_storage=True)


def main():
    """Main application entry point."""
    flow = get_flow()

    # Sidebar navigation
    st.sidebar.title("🔢 Jantrik")
    st.sidebar.markdown("---")

    pages = {"🏠 Home": None}
    for config in COLLECTIONS.values():
        pages[f"📒 {config.title}"] = config.collection_type
    pages["⚙️ Settings"] = "settings"

    page = st.sidebar.radio("Navigate to:", list(pages), index=0)

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **How to use:**
        1. Pick a collection
        2. Enter a number and an amount
        3. Export to Excel when done
        """
    )

    target = pages[page]
    if target is None:
        render_home_page(flow)
    elif target == "settings":
        render_settings_page()
    else:
        render_collection_page(flow, target)


def render_home_page(flow: CollectionFlow):
    """Render the landing page with one summary card per collection."""
    st.title("🔢 Jantrik")
    st.markdown("Track collected amounts for every number.")

    columns = st.columns(len(COLLECTIONS))
    for column, config in zip(columns, COLLECTIONS.values()):
        view = run_async(flow.view_collection(config.collection_type))
        with column:
            st.subheader(config.title)
            st.caption(config.subtitle)
            st.metric("Active Numbers", view.active_count)
            st.metric("Total Amount", format_amount(view.total_amount, grouping=True))


def render_collection_page(flow: CollectionFlow, collection_type: CollectionType):
    """Render a collection: stats, add form, searchable list, export and reset."""
    config = get_collection_config(collection_type)
    state_key = f"search_{collection_type.value}"

    st.title(f"📒 {config.title}")
    st.markdown(config.subtitle)

    flash = st.session_state.pop(FLASH_KEY, None)
    if flash:
        message, detail = flash
        st.success(message)
        st.caption(detail)

    warning = flow.storage_warning(collection_type)
    if warning:
        st.warning(warning)
        if st.button("Dismiss", key=f"dismiss_{collection_type.value}"):
            flow.dismiss_storage_warning(collection_type)
            st.rerun()

    search_term = st.session_state.get(state_key, "")
    view = run_async(flow.view_collection(collection_type, search_term))

    # Stats
    col1, col2, col3 = st.columns(3)
    col1.metric("Active Numbers", view.active_count)
    col2.metric("Total Amount", format_amount(view.total_amount, grouping=True))
    col3.metric("Available Numbers", view.available_count)

    render_actions(flow, collection_type, view)

    st.markdown("---")
    form_col, list_col = st.columns([1, 2])

    with form_col:
        render_add_form(flow, collection_type)

    with list_col:
        st.subheader("Collection Numbers")
        st.text_input(
            "Search numbers...",
            key=state_key,
            placeholder="Search numbers...",
        )
        st.caption(f"Numbers with amounts ({view.shown_count} shown)")

        if view.entries:
            with st.container(height=600):
                for entry in view.entries:
                    st.markdown(
                        f'<span class="number-chip">{entry.number}</span> '
                        f'<span class="amount-badge {TIER_CLASSES[entry.tier]}">'
                        f'{format_amount(entry.amount, grouping=True)}</span>',
                        unsafe_allow_html=True,
                    )
        else:
            st.info("No numbers found")
            if search_term:
                st.caption("Try adjusting your search term")
            else:
                st.caption("Start by adding amounts to numbers")


def render_add_form(flow: CollectionFlow, collection_type: CollectionType):
    """The number + amount form."""
    config = get_collection_config(collection_type)

    st.subheader("➕ Add Amount")
    st.caption("Enter a number and amount to add to the collection")

    with st.form(f"add_{collection_type.value}", clear_on_submit=True):
        number_input = st.text_input(
            f"Number ({config.subtitle})",
            placeholder=f"Enter {config.min_label}-{config.max_label}",
        )
        amount_input = st.text_input("Amount", placeholder="Enter amount")
        submitted = st.form_submit_button("Add Amount", type="primary")

    if not submitted:
        return

    try:
        result = run_async(
            flow.add_amount(
                collection_type,
                number_input,
                amount_input,
                correlation_id=create_correlation_id(),
            )
        )
    except ValidationError as e:
        st.error(e.message)
    except OperationInProgressError:
        st.warning("Still adding the previous amount...")
    except StorageError:
        st.error("Failed to update number. Please try again.")
    else:
        st.session_state[FLASH_KEY] = (result.success_message, result.detail_message)
        st.rerun()


def render_actions(flow: CollectionFlow, collection_type: CollectionType, view):
    """Export and reset controls."""
    config = get_collection_config(collection_type)
    export_col, reset_col = st.columns(2)

    with export_col:
        if st.button("📥 Export Excel", key=f"export_{collection_type.value}"):
            with st.spinner("Exporting..."):
                try:
                    document = run_async(
                        flow.export_collection(
                            collection_type,
                            correlation_id=create_correlation_id(),
                        )
                    )
                except ExportError as e:
                    st.error(str(e))
                except OperationInProgressError:
                    st.warning("An export is already running.")
                else:
                    st.download_button(
                        "💾 Download file",
                        data=document.content,
                        file_name=document.filename,
                        mime=document.mime_type,
                        key=f"download_{collection_type.value}",
                    )
                    st.success(
                        f"Collection exported successfully! "
                        f"({document.number_count} numbers exported)"
                    )

    with reset_col:
        with st.expander("🔄 Reset Collection", expanded=False):
            st.markdown(
                f"""
                Are you sure you want to reset the **{config.title}**?

                This action will:
                - Clear all {view.active_count} numbers with amounts
                - Remove total amount of {format_amount(view.total_amount, grouping=True)}
                - Delete all stored data permanently

                **This action cannot be undone. Consider exporting your data first.**
                """
            )
            confirmed = st.checkbox(
                "I understand, reset this collection",
                key=f"confirm_reset_{collection_type.value}",
            )
            if st.button(
                "Yes, Reset Collection",
                type="primary",
                disabled=not confirmed or view.active_count == 0,
                key=f"reset_{collection_type.value}",
            ):
                try:
                    run_async(
                        flow.reset_collection(
                            collection_type,
                            correlation_id=create_correlation_id(),
                        )
                    )
                except OperationInProgressError:
                    st.warning("A reset is already running.")
                except StorageError:
                    st.error("Failed to reset collection. Please try again.")
                else:
                    st.session_state.pop(f"search_{collection_type.value}", None)
                    st.session_state.pop(f"confirm_reset_{collection_type.value}", None)
                    st.session_state[FLASH_KEY] = (
                        f"{config.title} has been reset successfully!",
                        "All data has been cleared and the collection is now empty.",
                    )
                    st.rerun()


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")

    status = validate_all_settings()

    sections = [
        ("Storage", "storage"),
        ("Excel Export", "export"),
        ("Application", "app"),
    ]

    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name} - OK")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    if status.get("storage"):
        storage = get_settings().storage
        st.markdown(f"**Storage backend:** `{storage.backend}`")
        if storage.backend == "json":
            st.markdown(f"**Data directory:** `{storage.data_dir}`")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "Settings are read from environment variables or a `.env` file. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()

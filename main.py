"""
main.py
-------
Streamlit UI for browsing a Pinecone index:
- Sidebar: index name (remembered locally) + namespace sort mode
- Left: namespaces with vector counts, starred ones pinned on top
- Middle: paginated vector ids for the selected namespace, delete / delete all
- Right: the selected vector as JSON

The selected namespace/vector live in the `route` query parameter, e.g.
?route=/my-namespace/doc%231 so views can be bookmarked.
"""
import streamlit as st

from client_state import ClientState, view_key
from procedures import ProcedureError, build_api
from query_cache import QueryCache
from utils.config import CLIENT_STATE_PATH, PINECONE_INDEX_NAME
from views import (
    NamespaceListController, VectorListController, SORT_MODES,
    build_route, display_name, load_vector_detail, parse_route,
)

st.set_page_config(page_title="Pinecone Viewer", layout="wide")
st.title("🌲 Pinecone Viewer")
st.caption("Explore and manage the vectors in your Pinecone index")

@st.cache_resource
def get_api():
    return build_api()

# ---------- Per-session state ----------
if "client_state" not in st.session_state:
    state = ClientState(CLIENT_STATE_PATH).load()
    if not state.index_name and PINECONE_INDEX_NAME:
        state.set_index_name(PINECONE_INDEX_NAME)
    st.session_state.client_state = state
    st.session_state.cache = QueryCache()
client_state: ClientState = st.session_state.client_state
cache: QueryCache = st.session_state.cache
api = get_api()

if "namespace_ctl" not in st.session_state:
    st.session_state.namespace_ctl = NamespaceListController(api, cache)
    st.session_state.vector_ctl = VectorListController(api, cache)
namespace_ctl: NamespaceListController = st.session_state.namespace_ctl
vector_ctl: VectorListController = st.session_state.vector_ctl

def navigate(namespace: str = "", vector_id: str = ""):
    st.query_params["route"] = build_route(namespace, vector_id)

selected_ns, selected_vector = parse_route(st.query_params.get("route"))

# ---------- Sidebar ----------
st.sidebar.header("🔧 Index")
draft = st.sidebar.text_input("Pinecone Index", value=client_state.index_name,
                              placeholder="Enter Pinecone index name")
if st.sidebar.button("Save Index", disabled=not draft.strip(), width="stretch"):
    client_state.set_index_name(draft)
    st.rerun()
index_name = client_state.index_name

sort_pref_key = view_key(index_name, None, "sort")
saved_mode = client_state.get_view(sort_pref_key, SORT_MODES[0])
sort_mode = st.sidebar.selectbox("Sort namespaces", SORT_MODES,
                                 index=SORT_MODES.index(saved_mode) if saved_mode in SORT_MODES else 0)
if sort_mode != saved_mode:
    client_state.set_view(sort_pref_key, sort_mode)

if st.sidebar.button("Refresh", width="stretch"):
    cache.invalidate()

if not index_name:
    st.info("Enter a Pinecone index name in the sidebar to get started.")
    st.stop()

col_ns, col_vectors, col_detail = st.columns([1, 1, 2])

# ---------- Left: namespaces ----------
known_total = None
with col_ns:
    st.subheader("📦 Namespaces")
    try:
        with st.spinner("Loading namespaces..."):
            rows = namespace_ctl.sorted_namespaces(index_name, sort_mode)
    except ProcedureError as e:
        st.error(str(e))
        rows = []
    else:
        st.caption(f"{len(rows)} namespace{'s' if len(rows) != 1 else ''} found")
        if not rows:
            st.info("No namespaces in this index yet.")
    if namespace_ctl.error:
        st.error(str(namespace_ctl.error))
    for ns, is_starred in rows:
        is_selected = bool(ns.name) and ns.name == selected_ns
        if is_selected:
            known_total = ns.vector_count
        name_col, star_col = st.columns([5, 1])
        name_col.button(
            f"{display_name(ns.name)} ({ns.vector_count:,})",
            key=f"ns::{ns.name}",
            type="primary" if is_selected else "secondary",
            on_click=navigate, args=(ns.name,),
            disabled=not ns.name,
            width="stretch",
        )
        star_col.button(
            "★" if is_starred else "☆",
            key=f"star::{ns.name}",
            help="Unstar namespace" if is_starred else "Star namespace",
            on_click=namespace_ctl.toggle_star, args=(ns.name, is_starred),
            disabled=not ns.name,
        )

# ---------- Middle: vectors ----------
with col_vectors:
    if not selected_ns:
        st.subheader("Select a Namespace")
        st.write("Choose a namespace from the left panel to view its vectors.")
    else:
        vector_ctl.bind(index_name, selected_ns)
        st.subheader(f"Vectors in “{selected_ns}”")
        try:
            with st.spinner("Loading vectors..."):
                page = vector_ctl.page()
        except ProcedureError as e:
            st.error(str(e))
            page = None
        if vector_ctl.error:
            st.error(str(vector_ctl.error))
        if page is not None:
            if not page.vectors and not page.next_page_token:
                st.info("No vectors found in this namespace.")
            else:
                st.caption(vector_ctl.summary(page, known_total))
                confirm = st.session_state.get("confirm_delete_all") == (index_name, selected_ns)
                if page.vectors and not confirm and st.button("Delete All", type="secondary"):
                    st.session_state.confirm_delete_all = (index_name, selected_ns)
                    st.rerun()
                if confirm:
                    st.warning(f"Delete all vectors in the “{selected_ns}” namespace? "
                               "This action cannot be undone.")
                    c1, c2 = st.columns(2)
                    if c1.button("Cancel"):
                        st.session_state.confirm_delete_all = None
                        st.rerun()
                    if c2.button("Delete All", type="primary", key="confirm_delete_all_btn",
                                 disabled=vector_ctl.delete_all_mutation.is_pending):
                        if vector_ctl.delete_all() is not None:
                            st.session_state.confirm_delete_all = None
                        st.rerun()

                start = vector_ctl.paginator.page_index * vector_ctl.paginator.page_size
                for i, vid in enumerate(page.vectors):
                    id_col, del_col = st.columns([5, 1])
                    id_col.button(
                        f"#{start + i + 1:,}  {vid}",
                        key=f"vec::{vid}",
                        type="primary" if vid == selected_vector else "secondary",
                        on_click=navigate, args=(selected_ns, vid),
                        width="stretch",
                    )
                    del_col.button("🗑", key=f"del::{vid}", help="Delete vector",
                                   on_click=vector_ctl.delete_vector, args=(vid,))

                prev_col, label_col, next_col = st.columns([1, 2, 1])
                prev_col.button("Previous", disabled=not vector_ctl.paginator.has_previous,
                                on_click=vector_ctl.previous_page)
                label_col.caption(vector_ctl.page_label(page, known_total))
                next_col.button("Next", disabled=not page.next_page_token,
                                on_click=vector_ctl.next_page)

# ---------- Right: vector detail ----------
with col_detail:
    st.subheader("Vector Details")
    if not selected_vector:
        st.write("Select a vector to see its metadata and values.")
    else:
        try:
            with st.spinner(f"Loading details for vector: {selected_vector}"):
                detail = load_vector_detail(api, index_name, selected_ns, selected_vector)
        except ProcedureError as e:
            st.error(str(e))
        else:
            st.write(f"**ID:** `{selected_vector}`  \n**Namespace:** `{selected_ns}`")
            if detail is None or not detail.found:
                st.warning("Vector not found in this namespace.")
            else:
                st.code(detail.stringified, language="json")

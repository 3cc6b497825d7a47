"""
Complaints Tab - raise and resolve complaints
"""
from typing import Sequence

import streamlit as st

from aquatrack.core.actions import OperationsConsole
from aquatrack.core.complaints import complaint_counts, open_complaints
from aquatrack.core.models import Store
from aquatrack.core.read_model import DashboardSnapshot
from aquatrack.core.status import COMPLAINT_LABELS
from aquatrack.ui.common import show_outcome


def render_complaint_desk(snapshot: DashboardSnapshot, console: OperationsConsole, key_prefix: str = "sa"):
    """Open complaints with a resolve box each, then the resolved history."""
    st.markdown("### 📣 Complaints")

    counts = complaint_counts(snapshot.complaints)
    cols = st.columns(len(counts))
    for col, (label, value) in zip(cols, counts.items()):
        col.metric(label, value)

    pending = open_complaints(snapshot.complaints)
    if not pending:
        st.success("No open complaints")
    for complaint in pending:
        with st.expander(f"📣 #{complaint.id} • {complaint.subject} • {COMPLAINT_LABELS[complaint.status]}"):
            st.write(complaint.description)
            st.caption(
                f"Raised by {complaint.created_by_name} ({complaint.raised_by_role}) • "
                f"Store {complaint.store_id or 'N/A'} • {complaint.channel}"
            )
            solution = st.text_area("Resolution", key=f"{key_prefix}_complaint_text_{complaint.id}")
            if st.button("Resolve", key=f"{key_prefix}_complaint_resolve_{complaint.id}"):
                show_outcome(console.resolve_complaint(complaint, solution))

    resolved = [c for c in snapshot.complaints if c.is_resolved]
    if resolved:
        st.markdown("#### Resolved")
        for complaint in resolved[:20]:
            st.write(f"✅ #{complaint.id} {complaint.subject}: {complaint.solution or '—'}")


def render_complaint_form(
    snapshot: DashboardSnapshot,
    console: OperationsConsole,
    stores: Sequence[Store],
    key_prefix: str,
):
    st.markdown("### 📣 Raise a Complaint")

    if not stores:
        st.info("No stores available to raise a complaint against")
    else:
        names = {s.id: f"{s.id} • {s.name}" for s in stores}
        with st.form(f"{key_prefix}_complaint_form", clear_on_submit=True):
            store_id = st.selectbox("Store", list(names), format_func=names.get)
            subject = st.text_input("Subject")
            description = st.text_area("Description")
            submitted = st.form_submit_button("Submit Complaint")
        if submitted:
            show_outcome(console.submit_complaint(subject, description, store_id))

    if snapshot.complaints:
        st.markdown("#### My Complaints")
        for complaint in snapshot.complaints:
            label = COMPLAINT_LABELS[complaint.status]
            with st.expander(f"#{complaint.id} • {complaint.subject} • {label}"):
                st.write(complaint.description)
                if complaint.solution:
                    st.success(f"Resolution: {complaint.solution}")

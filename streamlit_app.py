from __future__ import annotations

from datetime import date

import streamlit as st

from hms_backend.config import API_BASE
from hms_backend.mirror import ApiError, ClientMirror

st.set_page_config(page_title="HMS", layout="wide")

TIME_SLOTS = [
    "09:00 AM", "09:30 AM", "10:00 AM", "10:30 AM",
    "11:00 AM", "11:30 AM", "02:00 PM", "02:30 PM",
    "03:00 PM", "03:30 PM", "04:00 PM", "04:30 PM",
]



# Mirror per sessione (una istanza per browser, non globale)

def get_mirror() -> ClientMirror:
    mirror = st.session_state.get("mirror")
    if mirror is None:
        mirror = ClientMirror(API_BASE)
        errors = mirror.init()
        if errors:
            st.session_state["init_errors"] = {k: str(v) for k, v in errors.items()}
        st.session_state["mirror"] = mirror
    return mirror


def run_action(action, success: str) -> None:
    try:
        action()
        st.success(success)
    except ApiError as e:
        st.error(f"Operazione non riuscita: {e}")


mirror = get_mirror()



# Sidebar: nome visualizzato (nessuna verifica di identità)

with st.sidebar:
    st.header("Accesso")
    identity = mirror.get_session_identity()
    display_name = st.text_input("Nome", value=st.session_state.get("display_name") or identity.get("name") or "")
    if st.button("Entra", key="login_btn"):
        st.session_state["display_name"] = display_name.strip() or identity.get("name") or "John Doe"
        st.rerun()

    st.write(f"Utente: **{st.session_state.get('display_name') or identity.get('name') or '-'}**")

    if st.button("Ricarica dati", key="reload_btn"):
        st.session_state.pop("mirror", None)
        st.session_state.pop("init_errors", None)
        st.rerun()

    for name, err in (st.session_state.get("init_errors") or {}).items():
        st.warning(f"{name}: {err}")

    st.divider()
    st.caption(f"API: {API_BASE}")


st.title("Gestione visite")

tab1, tab2, tab3, tab4, tab5 = st.tabs(["Cruscotto", "Professionisti", "Clienti", "Visite", "Account"])



# TAB 1 - Cruscotto

with tab1:
    today = date.today().isoformat()
    stats = mirror.overview(today)

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Professionisti", stats["practitioners"])
    c2.metric("Clienti", stats["clients"])
    c3.metric("Visite", stats["visits"])
    c4.metric("Oggi", stats["today"])

    st.subheader("Agenda di oggi")
    if not stats["todayVisits"]:
        st.info("Nessuna visita in programma oggi.")
    for v in stats["todayVisits"]:
        st.write(f"- **{v['time']}** | {v['clientName']} | {v['practitionerName']} | {v['reason'] or '-'} | {v['status']}")



# TAB 2 - Professionisti

with tab2:
    with st.expander("Aggiungi professionista"):
        c1, c2 = st.columns(2)
        name = c1.text_input("Nome", key="pr_name")
        spec = c2.text_input("Specializzazione", key="pr_spec")
        contact = c1.text_input("Contatto", key="pr_contact")
        email = c2.text_input("Email", key="pr_email")

        if st.button("Salva", key="pr_submit"):
            run_action(
                lambda: mirror.add_practitioner(
                    {"name": name.strip(), "specialization": spec.strip(), "contact": contact.strip(), "email": email.strip()}
                ),
                "Professionista aggiunto.",
            )

    for p in mirror.get_practitioners():
        c1, c2 = st.columns([5, 1])
        c1.write(f"{p['id']} | **{p['name']}** | {p['specialization'] or '-'} | {p['contact'] or '-'} | {p['email'] or '-'}")
        if c2.button("Elimina", key=f"pr_del_{p['id']}"):
            run_action(lambda pid=p["id"]: mirror.delete_practitioner(pid), "Professionista eliminato.")
            st.rerun()



# TAB 3 - Clienti

with tab3:
    term = st.text_input("Cerca per nome", key="cl_search")
    clients = mirror.search_clients(term) if term else mirror.get_clients()
    if not clients:
        st.info("Nessun cliente trovato.")
    for c in clients:
        st.write(f"{c['id']} | **{c['name']}** | {c['age']} | {c['contact'] or '-'} | {c['email'] or '-'} | ultima visita: {c['lastVisit'] or '-'}")



# TAB 4 - Visite

with tab4:
    practitioners = mirror.get_practitioners()
    current = st.session_state.get("display_name") or mirror.get_session_identity().get("name")

    with st.expander("Prenota visita"):
        pr = st.selectbox(
            "Professionista",
            options=practitioners,
            format_func=lambda p: f"{p['name']} - {p['specialization']}",
            key="vi_pr",
        )
        day = st.date_input("Data", value=date.today(), min_value=date.today(), key="vi_date")
        slot = st.selectbox("Orario", options=TIME_SLOTS, key="vi_slot")
        reason = st.text_area("Motivo", key="vi_reason")

        if st.button("Prenota", key="vi_submit", disabled=not practitioners or not current):
            if not reason.strip():
                st.error("Il motivo è obbligatorio.")
            else:
                run_action(
                    lambda: mirror.add_visit(
                        {
                            "clientName": current,
                            "practitionerName": pr["name"],
                            "practitionerId": pr["id"],
                            "date": day.isoformat(),
                            "time": slot,
                            "reason": reason.strip(),
                        }
                    ),
                    f"Visita prenotata con {pr['name']} il {day.isoformat()} alle {slot}.",
                )

    c1, c2 = st.columns(2)
    f_date = c1.text_input("Filtra per data (YYYY-MM-DD)", key="vi_f_date")
    f_pr = c2.selectbox("Filtra per professionista", options=[""] + [p["name"] for p in practitioners], key="vi_f_pr")

    visits = mirror.filter_visits(date=f_date.strip() or None, practitioner_name=f_pr or None)
    if not visits:
        st.info("Nessuna visita trovata.")
    for v in visits:
        c1, c2, c3, c4 = st.columns([5, 1, 1, 1])
        c1.write(f"{v['id']} | {v['date']} {v['time']} | {v['clientName']} | {v['practitionerName']} | {v['reason'] or '-'} | **{v['status']}**")
        if c2.button("Conferma", key=f"vi_ok_{v['id']}"):
            run_action(lambda vid=v["id"]: mirror.update_visit_status(vid, "Confirmed"), "Visita confermata.")
            st.rerun()
        if c3.button("Annulla", key=f"vi_ko_{v['id']}"):
            run_action(lambda vid=v["id"]: mirror.update_visit_status(vid, "Cancelled"), "Visita annullata.")
            st.rerun()
        if c4.button("Elimina", key=f"vi_del_{v['id']}"):
            run_action(lambda vid=v["id"]: mirror.delete_visit(vid), "Visita eliminata.")
            st.rerun()



# TAB 5 - Account

with tab5:
    identity = mirror.get_session_identity()
    st.write(f"Nome: **{identity.get('name') or '-'}**")
    st.write(f"Email: **{identity.get('email') or '-'}**")

    with st.expander("Modifica"):
        new_name = st.text_input("Nome", value=identity.get("name") or "", key="acc_name")
        new_email = st.text_input("Email", value=identity.get("email") or "", key="acc_email")
        if st.button("Salva", key="acc_submit"):
            run_action(
                lambda: mirror.update_session_identity({"name": new_name.strip(), "email": new_email.strip()}),
                "Account aggiornato.",
            )

    st.subheader("Le mie visite")
    mine = mirror.visits_for_client(current) if current else []
    if not mine:
        st.info("Nessuna visita prenotata.")
    for v in mine:
        st.write(f"- **{v['practitionerName']}** | {v['date']} {v['time']} | {v['reason'] or '-'} | {v['status']}")

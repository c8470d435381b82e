import asyncio
import os
from typing import Optional, Tuple, Any, Dict, List

import httpx
import streamlit as st

from backend.utils.estados import ESTADOS_BRASILEIROS
from backend.utils import generate_id
from backend.utils.document_utils import DocumentUtils

API_BASE = os.getenv("API_BASE", "http://api:3000")  # nome do serviço na rede do docker compose

st.set_page_config(page_title="Cadastro de Produtores", page_icon="🌾", layout="wide")


# -------------- Helpers --------------
def current_auth() -> Optional[Tuple[str, str]]:
    return st.session_state.get("auth")

async def fetch_json(client: httpx.AsyncClient, method: str, url: str, **kwargs):
    auth = kwargs.pop("auth", current_auth())
    try:
        resp = await client.request(method, url, auth=auth, timeout=10, **kwargs)
        if resp.headers.get("content-type", "").startswith("application/json"):
            data = resp.json()
        else:
            data = {"raw": resp.text}
        if resp.is_error:
            return False, data, resp.status_code
        return True, data, resp.status_code
    except httpx.HTTPError as e:
        return False, {"error": str(e)}, 0

async def validate_document(client, document: str):
    return await fetch_json(client, "POST", f"{API_BASE}/api/v1/documents/validate", json={"document": document})

async def create_producer(client, payload: Dict[str, Any]):
    return await fetch_json(client, "POST", f"{API_BASE}/api/v1/producers", json=payload)

async def list_producers(client):
    return await fetch_json(client, "GET", f"{API_BASE}/api/v1/producers")

async def get_producer(client, producer_id: str):
    return await fetch_json(client, "GET", f"{API_BASE}/api/v1/producers/{producer_id}")

async def delete_producer(client, producer_id: str):
    return await fetch_json(client, "DELETE", f"{API_BASE}/api/v1/producers/{producer_id}")

async def validate_credentials(user: str, password: str) -> bool:
    """Realiza uma chamada ao endpoint raiz para validar credenciais Basic Auth."""
    async with httpx.AsyncClient() as client:
        try:
            resp = await client.get(f"{API_BASE}/", auth=(user, password), timeout=5)
            return resp.status_code == 200
        except httpx.HTTPError:
            return False

def reformat_document(key: str) -> None:
    # máscara aplicada a cada alteração do campo CPF/CNPJ
    st.session_state[key] = DocumentUtils.format_document(st.session_state.get(key, ""))

def add_fazenda() -> None:
    st.session_state.setdefault("fazendas", []).append(generate_id())

def remove_fazenda(key: str) -> None:
    st.session_state["fazendas"] = [k for k in st.session_state.get("fazendas", []) if k != key]

def collect_fazendas() -> List[Dict[str, Any]]:
    fazendas = []
    for key in st.session_state.get("fazendas", []):
        fazendas.append({
            "nome_fazenda": st.session_state.get(f"nome_{key}", ""),
            "cidade": st.session_state.get(f"cidade_{key}", ""),
            "estado": st.session_state.get(f"estado_{key}", ""),
            "area_total": st.session_state.get(f"total_{key}", 0.0),
            "area_agricultavel": st.session_state.get(f"agri_{key}", 0.0),
            "area_vegetacao": st.session_state.get(f"veg_{key}", 0.0),
        })
    return fazendas

def show_error(status: int, data: Any) -> None:
    detail = data.get("detail") if isinstance(data, dict) else data
    if status == 422:
        st.error(f"Validação rejeitada: {detail}")
    elif status == 409:
        st.error(f"Documento já cadastrado: {detail}")
    elif status == 400:
        st.error(f"Dados inválidos: {detail}")
    elif status == 404:
        st.warning(f"Não encontrado: {detail}")
    else:
        st.error(f"Erro ({status}): {detail}")

def logout():
    st.session_state.pop("auth", None)
    st.rerun()


# -------------- UI Sections --------------
st.title("🌾 Cadastro de Produtores Rurais")
st.caption("Console em Streamlit para a API de produtores (login obrigatório)")

async def main_ui():
    # Gating de autenticação
    if "auth" not in st.session_state:
        st.subheader("🔐 Login")
        with st.form("login_form", clear_on_submit=False):
            user = st.text_input("Usuário", key="login_user")
            pwd = st.text_input("Senha", type="password", key="login_pwd")
            if st.form_submit_button("Entrar"):
                if not user or not pwd:
                    st.warning("Preencha usuário e senha.")
                elif await validate_credentials(user, pwd):
                    st.session_state["auth"] = (user, pwd)
                    st.rerun()
                else:
                    st.error("Credenciais inválidas ou serviço indisponível.")
        st.stop()

    st.sidebar.markdown(f"**Usuário:** {current_auth()[0]}")
    st.sidebar.button("Sair", on_click=logout)

    async with httpx.AsyncClient() as client:
        tabs = st.tabs(["Novo Produtor", "Produtores", "Verificar Documento"])

        # ---- Tab Novo Produtor ----
        with tabs[0]:
            st.subheader("Dados do Produtor")
            col_doc, col_nome = st.columns(2)
            with col_doc:
                st.text_input(
                    "CPF/CNPJ *",
                    key="p_doc",
                    max_chars=18,
                    placeholder="000.000.000-00 ou 00.000.000/0000-00",
                    on_change=reformat_document,
                    args=("p_doc",),
                )
            with col_nome:
                st.text_input("Nome do Produtor *", key="p_nome")

            st.markdown("**Fazendas do Produtor**")
            st.button("Adicionar fazenda", on_click=add_fazenda)
            for key in st.session_state.get("fazendas", []):
                with st.expander(f"Fazenda {key}", expanded=True):
                    c1, c2, c3 = st.columns(3)
                    c1.text_input("Nome da fazenda", key=f"nome_{key}")
                    c2.text_input("Cidade", key=f"cidade_{key}")
                    c3.selectbox("Estado", ESTADOS_BRASILEIROS, key=f"estado_{key}")
                    a1, a2, a3 = st.columns(3)
                    a1.number_input("Área total (ha)", min_value=0.0, key=f"total_{key}")
                    a2.number_input("Área agricultável (ha)", min_value=0.0, key=f"agri_{key}")
                    a3.number_input("Área de vegetação (ha)", min_value=0.0, key=f"veg_{key}")
                    st.button("Remover", key=f"rm_{key}", on_click=remove_fazenda, args=(key,))

            if st.button("Cadastrar", type="primary"):
                document = st.session_state.get("p_doc", "")
                if not DocumentUtils.is_valid_document(document):
                    st.warning("CPF/CNPJ inválido.")
                else:
                    payload = {
                        "cpf_cnpj": document,
                        "nome": st.session_state.get("p_nome", ""),
                        "fazendas": collect_fazendas(),
                    }
                    ok, data, status = await create_producer(client, payload)
                    if ok:
                        st.success(f"Cadastro enviado. ID: {data.get('producer_id')}")
                        st.session_state["last_producer"] = data.get("producer_id")
                    else:
                        show_error(status, data)

        # ---- Tab Produtores ----
        with tabs[1]:
            st.subheader("Produtores Cadastrados")
            ok, data, status = await list_producers(client)
            if not ok:
                show_error(status, data)
            elif not data:
                st.info("Nenhum produtor cadastrado ainda.")
            else:
                for p in data:
                    pid = p.get("producer_id")
                    with st.expander(f"{p.get('nome')} ({p.get('cpf_cnpj_formatado')}) - {p.get('status')}"):
                        st.json(p)
                        if st.button("Excluir", key=f"del_{pid}"):
                            dok, ddata, dstatus = await delete_producer(client, pid)
                            if dok:
                                st.warning(f"Produtor {pid} removido")
                                st.rerun()
                            show_error(dstatus, ddata)

            default_id: Optional[str] = st.session_state.get("last_producer")
            pid = st.text_input("Consultar por ID", value=default_id or "")
            if st.button("Consultar"):
                ok, data, status = await get_producer(client, pid)
                if ok:
                    st.json(data)
                else:
                    show_error(status, data)

        # ---- Tab Verificar Documento ----
        with tabs[2]:
            st.subheader("Verificar CPF/CNPJ")
            st.text_input("Documento", key="v_doc", max_chars=18, on_change=reformat_document, args=("v_doc",))
            if st.button("Verificar"):
                ok, data, status = await validate_document(client, st.session_state.get("v_doc", ""))
                if not ok:
                    show_error(status, data)
                elif data.get("valid"):
                    st.success(f"{(data.get('kind') or '').upper()} válido: {data.get('formatted')}")
                else:
                    st.error(f"Documento inválido: {data.get('formatted')}")

asyncio.run(main_ui())

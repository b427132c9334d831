# --------------------------------------------------------------
# File: Home.py
# Description: Define la página principal de Streamlit con el resumen del flujo.
# --------------------------------------------------------------

import streamlit as st

from api.services import get_document_service

# Configura los metadatos de la página principal de la aplicación.
st.set_page_config(page_title="DocsCrypt", page_icon="🔐", layout="centered")

# Presenta el nombre del producto y su propósito general.
st.title("🔐 DocsCrypt")
st.write(
    "Sube documentos Word y Excel y protégelos con un cifrado en dos etapas: "
    "cifrado afín byte a byte seguido de AES-128-CBC."
)
st.info("Ve a **Subir y Cifrar** para proteger un documento nuevo.")

# Muestra los parámetros activos del pipeline, sin material de clave.
service = get_document_service()
with st.expander("Parámetros de cifrado"):
    st.json(service.encryption_info())

if st.button("🧪 Ejecutar autotest de cifrado"):
    result = service.self_test()
    if result["success"]:
        st.success(result["message"])
    else:
        st.error(result.get("message") or result.get("error"))
    st.json(result)

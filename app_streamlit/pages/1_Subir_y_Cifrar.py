# --------------------------------------------------------------
# File: 1_Subir_y_Cifrar.py
# Description: Gestiona la carga y el cifrado de documentos mediante Streamlit.
# --------------------------------------------------------------

import streamlit as st

from api.services import get_document_service
from docscrypt.errors import DocsCryptError

# Presenta el título de la sección dedicada al cifrado.
st.title("⬆️ Subir y cifrar")

service = get_document_service()

# Permite seleccionar el documento a procesar.
f = st.file_uploader("Selecciona un documento", type=["docx", "xlsx"])
if f and st.button("Cifrar (afín + AES-128-CBC)"):
    try:
        record = service.encrypt_document(f.read(), f.name)
    except DocsCryptError as exc:
        st.error(str(exc))
        st.stop()

    meta = record.metadata
    st.success("Documento cifrado y guardado.")
    st.code(
        f"{meta.algorithm_tag} | iv={len(meta.iv) * 4} bits\n"
        f"claro={meta.original_size} bytes | cifrado={meta.encrypted_size} bytes"
    )

    # Muestra el sidecar persistido junto al contenedor.
    st.markdown("### Metadatos")
    st.json(record.model_dump(by_alias=True))
    st.caption(f"Guardado como: {record.stored_as}")

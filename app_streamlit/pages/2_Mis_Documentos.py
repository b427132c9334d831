# --------------------------------------------------------------
# File: 2_Mis_Documentos.py
# Description: Lista los documentos cifrados y permite descargarlos o descifrarlos.
# --------------------------------------------------------------

import streamlit as st

from api.services import get_document_service
from docscrypt.errors import DocsCryptError, IntegrityError

# Presenta el título de la sección orientada a la restauración.
st.title("📥 Mis documentos")

service = get_document_service()
records = service.list_documents()
if not records:
    st.info("No hay documentos almacenados aún. Ve a **Subir y Cifrar** para añadir alguno.")
    st.stop()

labels = {f"{r.original_name} ({r.created_at})": r for r in records}
sel = st.selectbox("Selecciona un documento:", list(labels), index=0)
record = labels[sel]

col1, col2 = st.columns(2)
with col1:
    st.write("**Nombre original:**", record.original_name)
    st.write("**Guardado como:**", record.stored_as)
    st.write("**Algoritmo:**", record.metadata.algorithm_tag)
with col2:
    st.write("**Tamaño original:**", record.metadata.original_size)
    st.write("**Tamaño cifrado:**", record.metadata.encrypted_size)
    st.write("**IV (hex):**", record.metadata.iv)

# Permite descargar directamente el contenedor [IV][ciphertext].
download_name, blob = service.get_encrypted_document(record.doc_id)
st.download_button(
    "⬇️ Descargar archivo cifrado (.encrypted)",
    data=blob,
    file_name=download_name,
    mime="application/octet-stream",
)

# Ofrece el descifrado con verificación de checksum.
if st.button("🔓 Descifrar y preparar descarga del original"):
    try:
        filename, plaintext = service.decrypt_document(record.doc_id)
    except IntegrityError:
        st.error("El checksum no coincide: el archivo está corrupto o fue alterado.")
    except DocsCryptError as exc:
        st.error(f"Error descifrando: {exc}")
    else:
        st.success("Documento descifrado e íntegro.")
        st.download_button(
            "⬇️ Descargar documento original",
            data=plaintext,
            file_name=filename,
            mime="application/octet-stream",
        )
        st.caption(f"SHA-256 del claro: {record.metadata.checksum}")

if st.button("🗑️ Eliminar documento"):
    service.delete_document(record.doc_id)
    st.rerun()

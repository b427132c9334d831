# --------------------------------------------------------------
# File: 3_Descifrar_Archivo.py
# Description: Descifra un contenedor .encrypted descargado previamente.
# --------------------------------------------------------------

import streamlit as st

from api.services import get_document_service
from docscrypt.errors import DocsCryptError

st.title("🔑 Descifrar archivo")
st.write(
    "Sube un archivo `.encrypted`. Los primeros 16 bytes son el IV; sin los "
    "metadatos no se puede verificar el checksum."
)

service = get_document_service()

f = st.file_uploader("Archivo cifrado", type=None)
original_name = st.text_input("Nombre del archivo original (opcional)")
custom_key = st.text_input("Clave personalizada (opcional)", type="password")

if f and st.button("🔓 Descifrar"):
    try:
        entry = service.decrypt_uploaded(
            f.read(), f.name, original_filename=original_name or None, key=custom_key or None
        )
    except DocsCryptError as exc:
        st.error(f"{exc} El archivo puede estar corrupto o cifrado con otra configuración.")
        st.stop()
    st.session_state["temp_download"] = entry.temp_id
    st.success(f"Descifrado: {entry.filename} ({entry.size} bytes)")

temp_id = st.session_state.get("temp_download")
if temp_id and st.button("⬇️ Preparar descarga"):
    try:
        filename, data = service.take_temp_file(temp_id)
    except DocsCryptError as exc:
        st.error(str(exc))
    else:
        st.download_button("Guardar archivo", data=data, file_name=filename)
    finally:
        st.session_state.pop("temp_download", None)

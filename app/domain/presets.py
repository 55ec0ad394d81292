# app/domain/presets.py
# Stock templates offered when no template has been saved yet
from typing import List

from app.delivery.schemas.card import CardTemplate

_OFFICIAL_GREEN = {
    "id": "tpl_official_green",
    "name": "Modelo Oficial (Verde/Amarelo)",
    "widthPx": 340,
    "heightPx": 215,
    "orientation": "landscape",
    "frontBackground": "#ffffff",
    "backBackground": "#ffffff",
    "elements": [
        {"id": "bg_header", "type": "shape", "label": "Barra Verde", "x": 0, "y": 0, "width": 340, "height": 45,
         "style": {"backgroundColor": "#15803d", "borderRadius": "8px 8px 0 0"}, "layer": "front"},
        {"id": "e1", "type": "image", "label": "Logo Header", "field": "system.logo", "x": 4, "y": 3, "width": 32, "height": 32,
         "style": {"borderRadius": "50%", "backgroundColor": "white"}, "layer": "front"},
        {"id": "e2", "type": "text-dynamic", "label": "Nome Assoc.", "field": "system.name", "x": 18, "y": 5,
         "style": {"color": "white", "fontSize": "11px", "fontWeight": "bold", "textTransform": "uppercase",
                   "textAlign": "right", "width": "270px"}, "layer": "front"},
        {"id": "e2b", "type": "text-static", "label": "Cidade", "content": "PIRAÍ - RJ", "x": 18, "y": 14,
         "style": {"color": "#86efac", "fontSize": "8px", "fontWeight": "bold", "textAlign": "right", "width": "270px"},
         "layer": "front"},
        {"id": "e3", "type": "image", "label": "Foto", "field": "avatarUrl", "x": 5, "y": 26, "width": 75, "height": 85,
         "style": {"borderRadius": "6px", "border": "2px solid #15803d", "backgroundColor": "#f3f4f6"}, "layer": "front"},
        {"id": "lbl_name", "type": "text-static", "label": "Label Nome", "content": "NOME COMPLETO", "x": 30, "y": 26,
         "style": {"color": "#6b7280", "fontSize": "6px", "fontWeight": "bold"}, "layer": "front"},
        {"id": "e4", "type": "text-dynamic", "label": "Nome", "field": "name", "x": 30, "y": 29,
         "style": {"color": "#64748b", "fontSize": "14px", "fontWeight": "bold", "textTransform": "uppercase"},
         "layer": "front"},
        {"id": "lbl_born", "type": "text-static", "label": "Label Nasc", "content": "NASCIMENTO", "x": 65, "y": 40,
         "style": {"color": "#6b7280", "fontSize": "6px", "fontWeight": "bold"}, "layer": "front"},
        {"id": "val_born", "type": "text-dynamic", "label": "Nascimento", "field": "admissionDate", "x": 65, "y": 43,
         "style": {"color": "#64748b", "fontSize": "10px"}, "layer": "front"},
        {"id": "lbl_cpf", "type": "text-static", "label": "Label CPF", "content": "CPF", "x": 30, "y": 52,
         "style": {"color": "#6b7280", "fontSize": "6px", "fontWeight": "bold"}, "layer": "front"},
        {"id": "e7", "type": "text-dynamic", "label": "CPF", "field": "cpfCnpj", "x": 30, "y": 55,
         "style": {"color": "#64748b", "fontSize": "10px", "fontWeight": "bold"}, "layer": "front"},
        {"id": "bg_badge", "type": "shape", "label": "Fundo Cargo", "x": 5, "y": 68, "width": 75, "height": 18,
         "style": {"backgroundColor": "#15803d", "borderRadius": "12px"}, "layer": "front"},
        {"id": "e5", "type": "text-dynamic", "label": "Cargo", "field": "role", "x": 5, "y": 70,
         "style": {"color": "white", "fontSize": "9px", "fontWeight": "bold", "textTransform": "uppercase",
                   "width": "75px", "textAlign": "center"}, "layer": "front"},
        {"id": "bg_footer", "type": "shape", "label": "Barra Amarela", "x": 0, "y": 88, "width": 340, "height": 26,
         "style": {"backgroundColor": "#facc15", "borderRadius": "0 0 8px 8px"}, "layer": "front"},
        {"id": "txt_footer", "type": "text-dynamic", "label": "Endereço", "field": "system.address", "x": 5, "y": 91,
         "style": {"color": "#000", "fontSize": "6px", "fontWeight": "bold", "textAlign": "center", "width": "330px"},
         "layer": "front"},
        {"id": "txt_cnpj", "type": "text-dynamic", "label": "CNPJ", "field": "system.cnpj", "x": 5, "y": 94,
         "style": {"color": "#000", "fontSize": "6px", "fontWeight": "bold", "textAlign": "center", "width": "330px"},
         "layer": "front"},
        {"id": "e8", "type": "qrcode", "label": "QR", "field": "qrCodeData", "x": 40, "y": 25, "width": 70, "height": 70,
         "style": {}, "layer": "back"},
        {"id": "e9", "type": "text-static", "label": "Instrução", "content": "Escaneie para validar o acesso", "x": 20, "y": 65,
         "style": {"color": "#000", "fontSize": "10px", "textAlign": "center", "width": "204px"}, "layer": "back"},
    ],
}

_EXECUTIVE_PORTRAIT = {
    "id": "tpl_modern",
    "name": "Executivo Vertical",
    "widthPx": 340,
    "heightPx": 215,
    "orientation": "portrait",
    "frontBackground": "linear-gradient(to bottom, #111827, #374151)",
    "backBackground": "#f3f4f6",
    "elements": [
        {"id": "m1", "type": "image", "label": "Foto", "field": "avatarUrl", "x": 25, "y": 15, "width": 100, "height": 100,
         "style": {"borderRadius": "50%", "border": "4px solid #4f46e5"}, "layer": "front"},
        {"id": "m2", "type": "text-dynamic", "label": "Nome", "field": "name", "x": 0, "y": 50,
         "style": {"color": "white", "fontSize": "18px", "fontWeight": "bold", "width": "100%", "textAlign": "center"},
         "layer": "front"},
        {"id": "m3", "type": "text-dynamic", "label": "Cargo", "field": "role", "x": 0, "y": 58,
         "style": {"color": "#818cf8", "fontSize": "14px", "width": "100%", "textAlign": "center",
                   "textTransform": "uppercase"}, "layer": "front"},
        {"id": "m4", "type": "image", "label": "Logo", "field": "system.logo", "x": 40, "y": 85, "width": 40, "height": 40,
         "style": {}, "layer": "front"},
    ],
}


def preset_templates() -> List[CardTemplate]:
    return [CardTemplate.model_validate(data) for data in (_OFFICIAL_GREEN, _EXECUTIVE_PORTRAIT)]

"""
Product Name Lookup

プロダクトID (PAPI のプロダクトキー) を表示用のプロダクト名に変換します。
"""

from types import MappingProxyType


PRODUCT_NAMES = MappingProxyType({
    "API_Accel": "API Acceleration",
    "Adaptive_Media_Delivery": "Adaptive Media Delivery",
    "Alta": "Terra Alta Enterprise Accelerator",
    "Aqua_Mobile": "Aqua Mobile",
    "DCP": "IoT Edge Connect",
    "Download_Delivery": "Download Delivery",
    "Dynamic_Site_Del": "Dynamic Site Delivery",
    "EdgeConnect": "Cloud Monitor Data Delivery",
    "Edge_Connect_Message_Store": "Edge Connect Message Store",
    "Fresca": "Ion Standard",
    "HTTP_Content_Del": "HTTP Content Delivery",
    "HTTP_Downloads": "HTTP Downloads",
    "IoT": "IoT",
    "Obj_Caching": "Object Caching",
    "Obj_Delivery": "Object Delivery",
    "Progressive_Media": "Progressive Media Downloads",
    "RM": "Ion Media Advanced",
    "Rich_Media_Accel": "Rich Media Accelerator",
    "SPM": "Ion Premier",
    "Security_Failover": "Cloud Security Failover",
    "Site_Accel": "Dynamic Site Accelerator",
    "Site_Defender": "Kona Site Defender",
    "Site_Del": "Dynamic Site Delivery Legacy",
    "WebAP": "Web Application Protector",
    "Web_App_Accel": "Web Application Accelerator",
})


def get_product_name(product_id):
    """プロダクトIDに対応するプロダクト名を返します (未登録の場合は None)。"""
    return PRODUCT_NAMES.get(product_id)

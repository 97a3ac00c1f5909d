"""
Built-in ICD-10 catalogue (dental block K00-K14 plus a few related codes) and
the procedures commonly planned for each diagnosis.

Loaded into empty tables at start-up by ``core.bootstrap``.
"""

DENTAL_CATEGORY = "K00-K14"

# (code, category, title_en, title_tr, is_dental)
ICD10_CODES = [
    ("K00.0", DENTAL_CATEGORY, "Anodontia", "Anodonti", True),
    ("K00.6", DENTAL_CATEGORY, "Disturbances in tooth eruption", "Diş sürmesi bozuklukları", True),
    ("K01.1", DENTAL_CATEGORY, "Impacted teeth", "Gömülü dişler", True),
    ("K02.0", DENTAL_CATEGORY, "Caries limited to enamel", "Mineye sınırlı çürük", True),
    ("K02.1", DENTAL_CATEGORY, "Caries of dentine", "Dentin çürüğü", True),
    ("K02.2", DENTAL_CATEGORY, "Caries of cementum", "Sement çürüğü", True),
    ("K02.5", DENTAL_CATEGORY, "Caries with pulp exposure", "Pulpa açılmalı çürük", True),
    ("K03.0", DENTAL_CATEGORY, "Excessive attrition of teeth", "Dişlerde aşırı aşınma", True),
    ("K03.6", DENTAL_CATEGORY, "Deposits [accretions] on teeth", "Dişlerde birikintiler", True),
    ("K04.0", DENTAL_CATEGORY, "Pulpitis", "Pulpitis", True),
    ("K04.1", DENTAL_CATEGORY, "Necrosis of pulp", "Pulpa nekrozu", True),
    ("K04.4", DENTAL_CATEGORY, "Acute apical periodontitis of pulpal origin", "Pulpa kaynaklı akut apikal periodontitis", True),
    ("K04.5", DENTAL_CATEGORY, "Chronic apical periodontitis", "Kronik apikal periodontitis", True),
    ("K04.7", DENTAL_CATEGORY, "Periapical abscess without sinus", "Fistülsüz periapikal apse", True),
    ("K05.0", DENTAL_CATEGORY, "Acute gingivitis", "Akut gingivitis", True),
    ("K05.1", DENTAL_CATEGORY, "Chronic gingivitis", "Kronik gingivitis", True),
    ("K05.3", DENTAL_CATEGORY, "Chronic periodontitis", "Kronik periodontitis", True),
    ("K06.0", DENTAL_CATEGORY, "Gingival recession", "Diş eti çekilmesi", True),
    ("K07.3", DENTAL_CATEGORY, "Anomalies of tooth position", "Diş pozisyon anomalileri", True),
    ("K07.6", DENTAL_CATEGORY, "Temporomandibular joint disorders", "Temporomandibular eklem bozuklukları", True),
    ("K08.1", DENTAL_CATEGORY, "Loss of teeth due to accident, extraction or periodontal disease", "Kaza, çekim veya periodontal hastalığa bağlı diş kaybı", True),
    ("K08.3", DENTAL_CATEGORY, "Retained dental root", "Kalmış diş kökü", True),
    ("K12.0", DENTAL_CATEGORY, "Recurrent oral aphthae", "Tekrarlayan oral aft", True),
    ("S02.5", "S00-S09", "Fracture of tooth", "Diş kırığı", True),
    ("Z01.2", "Z00-Z13", "Dental examination", "Diş muayenesi", False),
]

# (code, procedure_name, priority) - lower priority first
PROCEDURE_SUGGESTIONS = [
    ("K02.0", "Fluoride application", 1),
    ("K02.0", "Fissure sealant", 2),
    ("K02.1", "Composite filling", 1),
    ("K02.1", "Amalgam filling", 2),
    ("K02.5", "Root canal treatment", 1),
    ("K02.5", "Pulp capping", 2),
    ("K04.0", "Root canal treatment", 1),
    ("K04.0", "Pulpotomy", 2),
    ("K04.1", "Root canal treatment", 1),
    ("K04.1", "Extraction", 2),
    ("K04.5", "Root canal retreatment", 1),
    ("K04.5", "Apicoectomy", 2),
    ("K04.7", "Incision and drainage", 1),
    ("K04.7", "Root canal treatment", 2),
    ("K05.1", "Scaling and polishing", 1),
    ("K05.3", "Scaling and root planing", 1),
    ("K05.3", "Periodontal surgery", 2),
    ("K01.1", "Surgical extraction", 1),
    ("K03.6", "Scaling and polishing", 1),
    ("K08.1", "Dental implant", 1),
    ("K08.1", "Fixed bridge", 2),
    ("K08.1", "Removable partial denture", 3),
    ("K08.3", "Root extraction", 1),
    ("S02.5", "Composite restoration", 1),
    ("S02.5", "Crown", 2),
]

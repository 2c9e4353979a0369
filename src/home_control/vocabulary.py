"""多语言词表。

房间、动作、设备类型的多语言同义词表，按 语言 -> 规范键 -> 表层形式 组织。
模块加载时构建一次并冻结为只读映射，所有请求共享。
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterator, Mapping

from home_control.text import fold

VocabularyTable = Mapping[str, Mapping[str, tuple[str, ...]]]

SUPPORTED_LANGUAGES = ("en", "es", "fr", "de", "it", "pt", "nl", "sv")
DEFAULT_LANGUAGE = "en"


def _freeze(table: dict[str, dict[str, list[str]]]) -> VocabularyTable:
    """将嵌套字典冻结为只读映射。"""
    return MappingProxyType(
        {
            language: MappingProxyType(
                {key: tuple(forms) for key, forms in entries.items()}
            )
            for language, entries in table.items()
        }
    )


ROOM_VOCABULARY: VocabularyTable = _freeze(
    {
        "en": {
            "living room": ["living room", "lounge", "sitting room", "family room"],
            "bedroom": ["bedroom", "bed room", "master bedroom", "guest bedroom"],
            "kitchen": ["kitchen", "cook room"],
            "bathroom": ["bathroom", "bath room", "toilet", "restroom", "washroom"],
            "office": ["office", "study", "work room", "home office"],
            "dining room": ["dining room", "dining area"],
            "garage": ["garage", "car port"],
            "basement": ["basement", "cellar"],
            "attic": ["attic", "loft"],
            "hallway": ["hallway", "corridor", "hall"],
            "balcony": ["balcony", "terrace", "patio"],
            "garden": ["garden", "yard", "backyard"],
        },
        "es": {
            "living room": ["sala de estar", "salón", "sala", "cuarto de estar"],
            "bedroom": ["dormitorio", "habitación", "cuarto", "alcoba"],
            "kitchen": ["cocina"],
            "bathroom": ["baño", "aseo", "servicio"],
            "office": ["oficina", "estudio", "despacho"],
            "dining room": ["comedor", "sala de comedor"],
            "garage": ["garaje", "cochera"],
            "basement": ["sótano", "bodega"],
            "attic": ["ático", "desván"],
            "hallway": ["pasillo", "corredor"],
            "balcony": ["balcón", "terraza"],
            "garden": ["jardín", "patio"],
        },
        "fr": {
            "living room": ["salon", "salle de séjour", "séjour", "living"],
            "bedroom": ["chambre", "chambre à coucher"],
            "kitchen": ["cuisine"],
            "bathroom": ["salle de bain", "salle de bains", "toilettes"],
            "office": ["bureau", "cabinet de travail"],
            "dining room": ["salle à manger"],
            "garage": ["garage"],
            "basement": ["sous-sol", "cave"],
            "attic": ["grenier", "combles"],
            "hallway": ["couloir", "hall", "entrée"],
            "balcony": ["balcon", "terrasse"],
            "garden": ["jardin"],
        },
        "de": {
            "living room": ["wohnzimmer", "wohnraum", "stube"],
            "bedroom": ["schlafzimmer", "schlafraum"],
            "kitchen": ["küche"],
            "bathroom": ["badezimmer", "bad", "toilette"],
            "office": ["büro", "arbeitszimmer", "homeoffice"],
            "dining room": ["esszimmer", "speisezimmer"],
            "garage": ["garage"],
            "basement": ["keller", "untergeschoss"],
            "attic": ["dachboden", "speicher"],
            "hallway": ["flur", "diele", "gang"],
            "balcony": ["balkon", "terrasse"],
            "garden": ["garten"],
        },
        "it": {
            "living room": ["soggiorno", "salotto", "sala"],
            "bedroom": ["camera da letto", "camera", "stanza da letto"],
            "kitchen": ["cucina"],
            "bathroom": ["bagno", "toilette"],
            "office": ["ufficio", "studio"],
            "dining room": ["sala da pranzo"],
            "garage": ["garage", "box"],
            "basement": ["cantina", "seminterrato"],
            "attic": ["soffitta", "mansarda"],
            "hallway": ["corridoio", "ingresso"],
            "balcony": ["balcone", "terrazza"],
            "garden": ["giardino"],
        },
        "pt": {
            "living room": ["sala de estar", "sala", "living"],
            "bedroom": ["quarto", "dormitório", "quarto de dormir"],
            "kitchen": ["cozinha"],
            "bathroom": ["banheiro", "casa de banho", "wc"],
            "office": ["escritório", "gabinete"],
            "dining room": ["sala de jantar"],
            "garage": ["garagem"],
            "basement": ["porão", "cave"],
            "attic": ["sótão", "águas-furtadas"],
            "hallway": ["corredor", "hall"],
            "balcony": ["varanda", "terraço"],
            "garden": ["jardim"],
        },
        "nl": {
            "living room": ["woonkamer", "zitkamer", "huiskamer"],
            "bedroom": ["slaapkamer", "bedroom"],
            "kitchen": ["keuken"],
            "bathroom": ["badkamer", "toilet", "wc"],
            "office": ["kantoor", "studeerkamer", "werkkamer"],
            "dining room": ["eetkamer"],
            "garage": ["garage"],
            "basement": ["kelder", "souterrain"],
            "attic": ["zolder", "vliering"],
            "hallway": ["gang", "hal"],
            "balcony": ["balkon", "terras"],
            "garden": ["tuin"],
        },
        "sv": {
            "living room": ["vardagsrum", "vardagsrummet", "allrum"],
            "bedroom": ["sovrum", "sovrummet"],
            "kitchen": ["kök", "köket"],
            "bathroom": ["badrum", "badrummet", "toalett"],
            "office": ["kontor", "arbetsrum"],
            "dining room": ["matsal", "matsalen"],
            "garage": ["garage", "garaget"],
            "basement": ["källare", "källaren"],
            "attic": ["vind", "vinden"],
            "hallway": ["hall", "hallen", "korridor"],
            "balcony": ["balkong", "balkongen", "terrass"],
            "garden": ["trädgård", "trädgården", "trägård", "trägården"],
        },
    }
)

ACTION_VOCABULARY: VocabularyTable = _freeze(
    {
        "en": {
            "turn_on": ["turn on", "switch on", "activate", "enable", "start", "power on", "turn", "on"],
            "turn_off": ["turn off", "switch off", "deactivate", "disable", "stop", "power off", "off"],
            "dim": ["dim", "lower", "reduce brightness", "make dimmer"],
            "brighten": ["brighten", "increase brightness", "make brighter"],
            "set_temperature": ["set temperature", "temperature", "heat", "cool", "set temp"],
            "play_music": ["play music", "start music", "music on", "play"],
            "stop_music": ["stop music", "pause music", "music off"],
            "open": ["open", "raise", "lift"],
            "close": ["close", "shut"],
            "lock": ["lock", "secure"],
            "unlock": ["unlock", "open lock"],
        },
        "es": {
            "turn_on": ["encender", "enciende", "prender", "activar", "conectar"],
            "turn_off": ["apagar", "apaga", "desactivar", "desconectar"],
            "dim": ["atenuar", "bajar", "reducir brillo"],
            "brighten": ["aumentar brillo", "subir", "iluminar más"],
            "set_temperature": ["temperatura", "calentar", "enfriar"],
            "play_music": ["poner música", "reproducir música"],
            "stop_music": ["parar música", "pausar música"],
            "open": ["abrir", "levantar"],
            "close": ["cerrar"],
            "lock": ["cerrar con llave", "bloquear"],
            "unlock": ["desbloquear"],
        },
        "fr": {
            "turn_on": ["allumer", "allume", "activer", "mettre en marche"],
            "turn_off": ["éteindre", "éteins", "désactiver", "arrêter"],
            "dim": ["tamiser", "réduire luminosité"],
            "brighten": ["augmenter luminosité", "éclaircir"],
            "set_temperature": ["température", "chauffer", "refroidir"],
            "play_music": ["jouer musique", "jouer", "mettre musique"],
            "stop_music": ["arrêter musique", "pause musique"],
            "open": ["ouvrir", "lever"],
            "close": ["fermer", "baisser"],
            "lock": ["verrouiller", "fermer à clé"],
            "unlock": ["déverrouiller"],
        },
        "de": {
            "turn_on": ["einschalten", "anmachen", "aktivieren", "schalte ein", "mach an"],
            "turn_off": ["ausschalten", "ausmachen", "deaktivieren", "schalte aus", "mach aus"],
            "dim": ["dimmen", "dunkler machen", "reduzieren"],
            "brighten": ["heller machen", "aufhellen"],
            "set_temperature": ["temperatur", "heizen", "kühlen"],
            "play_music": ["musik abspielen", "abspielen", "musik an"],
            "stop_music": ["musik stoppen", "musik aus"],
            "open": ["öffnen", "aufmachen"],
            "close": ["schließen", "zumachen"],
            "lock": ["abschließen", "sperren"],
            "unlock": ["aufschließen", "entsperren"],
        },
        "it": {
            "turn_on": ["accendere", "attivare", "accendi"],
            "turn_off": ["spegnere", "disattivare", "spegni"],
            "dim": ["attenuare", "ridurre luminosità"],
            "brighten": ["aumentare luminosità", "schiarire"],
            "set_temperature": ["temperatura", "riscaldare", "raffreddare"],
            "play_music": ["suonare musica", "metti musica"],
            "stop_music": ["fermare musica", "pausa musica"],
            "open": ["aprire", "alzare"],
            "close": ["chiudere", "abbassare"],
            "lock": ["chiudere a chiave", "bloccare"],
            "unlock": ["sbloccare"],
        },
        "pt": {
            "turn_on": ["ligar", "acender", "ativar"],
            "turn_off": ["desligar", "apagar", "desativar"],
            "dim": ["diminuir", "atenuar", "reduzir brilho"],
            "brighten": ["aumentar brilho", "clarear"],
            "set_temperature": ["temperatura", "aquecer", "esfriar"],
            "play_music": ["tocar música", "tocar"],
            "stop_music": ["parar música", "pausar música"],
            "open": ["abrir", "levantar"],
            "close": ["fechar", "baixar"],
            "lock": ["trancar", "bloquear"],
            "unlock": ["destrancar", "desbloquear"],
        },
        "nl": {
            "turn_on": ["aanzetten", "inschakelen", "activeren", "zet aan"],
            "turn_off": ["uitzetten", "uitschakelen", "deactiveren", "zet uit"],
            "dim": ["dimmen", "zachter maken", "verlagen"],
            "brighten": ["feller maken", "verhogen"],
            "set_temperature": ["temperatuur", "verwarmen", "koelen"],
            "play_music": ["muziek afspelen", "muziek aan"],
            "stop_music": ["muziek stoppen", "muziek uit"],
            "open": ["openen", "omhoog"],
            "close": ["sluiten", "omlaag"],
            "lock": ["vergrendelen", "op slot"],
            "unlock": ["ontgrendelen", "van slot"],
        },
        "sv": {
            "turn_on": ["sätta på", "sätt på", "slå på", "aktivera", "tända", "tänd"],
            "turn_off": ["stänga av", "stäng av", "slå av", "deaktivera", "släcka", "släck"],
            "dim": ["dimma", "dimra", "minska ljusstyrka"],
            "brighten": ["öka ljusstyrka", "ljusare"],
            "set_temperature": ["temperatur", "värma", "kyla"],
            "play_music": ["spela musik", "spela", "musik på"],
            "stop_music": ["stoppa musik", "musik av"],
            "open": ["öppna", "höja"],
            "close": ["stänga", "stäng", "sänka"],
            "lock": ["låsa", "lås"],
            "unlock": ["låsa upp", "lås upp", "öppna lås"],
        },
    }
)

DEVICE_TYPE_VOCABULARY: VocabularyTable = _freeze(
    {
        "en": {
            "light": ["light", "lights", "lamp", "lamps", "bulb", "bulbs", "lighting"],
            "speaker": ["speaker", "speakers", "music", "audio"],
            "thermostat": ["thermostat", "heating", "temperature", "heat", "temp"],
            "lock": ["lock", "locks", "door lock"],
            "curtain": ["curtain", "curtains", "blinds", "shades"],
            "fan": ["fan", "fans", "ventilation"],
            "tv": ["tv", "television", "telly"],
            "socket": ["socket", "sockets", "plug", "outlet", "power"],
        },
        "es": {
            "light": ["luz", "luces", "lámpara", "lámparas", "bombilla"],
            "speaker": ["altavoz", "altavoces", "música", "audio"],
            "thermostat": ["termostato", "calefacción", "temperatura"],
            "lock": ["cerradura", "cerraduras", "cerrojo"],
            "curtain": ["cortina", "cortinas", "persiana", "persianas"],
            "fan": ["ventilador", "ventiladores"],
            "tv": ["tv", "televisión", "televisor"],
            "socket": ["enchufe", "enchufes", "toma"],
        },
        "fr": {
            "light": ["lumière", "lumières", "lampe", "lampes", "éclairage"],
            "speaker": ["haut-parleur", "haut-parleurs", "musique", "audio"],
            "thermostat": ["thermostat", "chauffage", "température"],
            "lock": ["serrure", "serrures", "verrou"],
            "curtain": ["rideau", "rideaux", "store", "stores"],
            "fan": ["ventilateur", "ventilateurs"],
            "tv": ["tv", "télévision", "télé"],
            "socket": ["prise", "prises", "prise électrique"],
        },
        "de": {
            "light": ["licht", "lichter", "lampe", "lampen", "beleuchtung"],
            "speaker": ["lautsprecher", "musik", "audio"],
            "thermostat": ["thermostat", "heizung", "temperatur"],
            "lock": ["schloss", "schlösser", "türschloss"],
            "curtain": ["vorhang", "vorhänge", "jalousie", "jalousien"],
            "fan": ["ventilator", "ventilatoren", "lüfter"],
            "tv": ["tv", "fernseher", "fernsehen"],
            "socket": ["steckdose", "steckdosen", "stecker"],
        },
        "it": {
            "light": ["luce", "luci", "lampada", "lampade", "illuminazione"],
            "speaker": ["altoparlante", "altoparlanti", "musica", "audio"],
            "thermostat": ["termostato", "riscaldamento", "temperatura"],
            "lock": ["serratura", "serrature", "lucchetto"],
            "curtain": ["tenda", "tende", "persiana", "persiane"],
            "fan": ["ventilatore", "ventilatori"],
            "tv": ["tv", "televisione", "televisore"],
            "socket": ["presa", "prese", "spina"],
        },
        "pt": {
            "light": ["luz", "luzes", "lâmpada", "lâmpadas", "iluminação"],
            "speaker": ["alto-falante", "alto-falantes", "música", "áudio"],
            "thermostat": ["termostato", "aquecimento", "temperatura"],
            "lock": ["fechadura", "fechaduras", "tranca"],
            "curtain": ["cortina", "cortinas", "persiana", "persianas"],
            "fan": ["ventilador", "ventiladores"],
            "tv": ["tv", "televisão", "televisor"],
            "socket": ["tomada", "tomadas", "plugue"],
        },
        "nl": {
            "light": ["licht", "lichten", "lamp", "lampen", "verlichting"],
            "speaker": ["luidspreker", "luidsprekers", "muziek", "audio"],
            "thermostat": ["thermostaat", "verwarming", "temperatuur"],
            "lock": ["slot", "sloten", "deurslot"],
            "curtain": ["gordijn", "gordijnen", "jaloezie", "jaloezieën"],
            "fan": ["ventilator", "ventilatoren"],
            "tv": ["tv", "televisie", "toestel"],
            "socket": ["stopcontact", "stopcontacten", "stekker"],
        },
        "sv": {
            "light": ["ljus", "ljuset", "lampa", "lampan", "lampor", "lamporna", "belysning"],
            "speaker": ["högtalare", "musik", "ljud"],
            "thermostat": ["termostat", "värme", "temperatur"],
            "lock": ["lås", "dörrlås"],
            "curtain": ["gardin", "gardiner", "persienner"],
            "fan": ["fläkt", "fläktar", "ventilation"],
            "tv": ["tv", "television", "teve"],
            "socket": ["uttag", "eluttag", "kontakt"],
        },
    }
)

# 多命令连接词
CONNECTORS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "en": ("and", "then", "also", "plus", "after that", "next"),
        "es": ("y", "entonces", "también", "además", "después"),
        "fr": ("et", "puis", "aussi", "ensuite", "après"),
        "de": ("und", "dann", "auch", "danach", "anschließend"),
        "it": ("e", "poi", "anche", "dopo", "successivamente"),
        "pt": ("e", "então", "também", "depois", "em seguida"),
        "nl": ("en", "dan", "ook", "daarna", "vervolgens"),
        "sv": ("och", "sedan", "även", "efter det", "därefter"),
    }
)

# 指代"全屋"的房间写法
ALL_ROOMS_TERMS: frozenset[str] = frozenset(
    {
        "all",
        "everywhere",
        "whole house",
        "house",
        "home",
        "todo",
        "toda la casa",
        "toute la maison",
        "partout",
        "überall",
        "ganzes haus",
        "tutta la casa",
        "ovunque",
        "casa toda",
        "overal",
        "hele huis",
        "hela huset",
        "överallt",
        "alla",
    }
)

FILLER_PHRASES = ("please", "can you", "could you", "would you", "i want to", "i need to")

PHRASE_NORMALIZATIONS: Mapping[str, str] = MappingProxyType(
    {
        "switch on": "turn on",
        "switch off": "turn off",
        "power on": "turn on",
        "power off": "turn off",
        "shut off": "turn off",
        "shut down": "turn off",
        "illuminate": "turn on",
        "darken": "turn off",
    }
)

ALL_MODIFIERS = ("all", "everything", "alla", "allt", "todo", "todos", "tout", "tous", "alles", "tutto", "tutti", "tudo")
SOME_MODIFIERS = ("some", "few", "några", "algunos", "quelques", "einige", "alcuni", "alguns", "sommige")


def resolve_language(language: str | None) -> str:
    """将语言代码规整为受支持的 ISO-639-1 代码。

    `sv-SE`/`sv_SE` 取前缀；未知或缺失时回退到默认语言。
    """
    if not isinstance(language, str):
        return DEFAULT_LANGUAGE
    code = language.strip().lower().replace("_", "-").split("-", 1)[0]
    if code in SUPPORTED_LANGUAGES:
        return code
    return DEFAULT_LANGUAGE


def iter_surface_forms(
    table: VocabularyTable,
    language: str | None = None,
) -> Iterator[tuple[str, str, str]]:
    """遍历词表中的 (语言, 规范键, 表层形式)。

    Args:
        table: 词表
        language: 指定语言；None 表示所有语言

    Yields:
        (language, canonical, surface) 三元组
    """
    languages = (language,) if language else tuple(table.keys())
    for code in languages:
        for canonical, forms in table.get(code, {}).items():
            for form in forms:
                yield code, canonical, form


def canonical_keys(table: VocabularyTable) -> list[str]:
    """返回词表中出现过的所有规范键（保持首次出现顺序）。"""
    keys: list[str] = []
    for entries in table.values():
        for canonical in entries:
            if canonical not in keys:
                keys.append(canonical)
    return keys


def translation_set(table: VocabularyTable, canonical: str) -> frozenset[str]:
    """返回规范键在所有语言下的折叠表层形式集合（含规范键本身）。"""
    forms = {fold(canonical)}
    for entries in table.values():
        for form in entries.get(canonical, ()):
            forms.add(fold(form))
    return frozenset(form for form in forms if form)

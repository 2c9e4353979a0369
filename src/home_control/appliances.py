"""插座电器推断。

根据插座的显示名称推断其所接电器，使 "light"、"kitchen appliances" 等类型过滤
也能选中智能插座。推断只影响选取哪些设备，不改变设备的写入方式。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping

from home_control.models import AppliancePattern, Device
from home_control.text import contains_term, fold
from home_control.vocabulary import (
    DEVICE_TYPE_VOCABULARY,
    SUPPORTED_LANGUAGES,
    iter_surface_forms,
)

logger = logging.getLogger(__name__)

SOCKET_CLASS = "socket"
_SHORT_TERM_LENGTH = 3


def _pattern(
    key: str,
    category: str,
    terms: dict[str, list[str]],
    common_actions: tuple[str, ...] = ("turn_on", "turn_off"),
) -> AppliancePattern:
    return AppliancePattern(
        key=key,
        category=category,
        terms=MappingProxyType({code: tuple(forms) for code, forms in terms.items()}),
        common_actions=common_actions,
    )


APPLIANCE_PATTERNS: tuple[AppliancePattern, ...] = (
    _pattern(
        "light",
        "lighting",
        {
            "en": ["light", "lights", "lamp", "lamps", "bulb", "bulbs", "lighting", "led"],
            "sv": ["ljus", "lampor", "lampa", "belysning", "led"],
            "de": ["licht", "lichter", "lampe", "lampen", "beleuchtung"],
            "fr": ["lumière", "lumières", "lampe", "lampes", "éclairage"],
            "es": ["luz", "luces", "lámpara", "lámparas", "iluminación"],
            "it": ["luce", "luci", "lampada", "lampade", "illuminazione"],
            "nl": ["licht", "lichten", "lamp", "lampen", "verlichting"],
            "pt": ["luz", "luzes", "lâmpada", "lâmpadas", "iluminação"],
        },
        common_actions=("turn_on", "turn_off", "dim"),
    ),
    _pattern(
        "coffeemachine",
        "kitchen",
        {
            "en": ["coffee machine", "coffee maker", "espresso machine", "coffee pot", "percolator"],
            "sv": ["kaffemaskin", "kaffebryggare", "espressomaskin", "kaffekanna"],
            "de": ["kaffeemaschine", "kaffeeautomat", "espressomaschine", "kaffeebereiter"],
            "fr": ["machine à café", "cafetière", "machine espresso", "percolateur"],
            "es": ["máquina de café", "cafetera", "máquina espresso"],
            "it": ["macchina del caffè", "caffettiera", "macchina espresso"],
            "nl": ["koffiezetapparaat", "koffiemachine", "espressomachine"],
            "pt": ["máquina de café", "cafeteira"],
        },
    ),
    _pattern(
        "kettle",
        "kitchen",
        {
            "en": ["kettle", "electric kettle", "water kettle", "tea kettle"],
            "sv": ["vattenkokare", "elkokare", "tevattenkokare"],
            "de": ["wasserkocher", "elektrischer wasserkocher", "teekocher"],
            "fr": ["bouilloire", "bouilloire électrique", "théière électrique"],
            "es": ["hervidor", "hervidor eléctrico", "tetera eléctrica"],
            "it": ["bollitore", "bollitore elettrico", "teiera elettrica"],
            "nl": ["waterkoker", "elektrische waterkoker", "theekettel"],
            "pt": ["chaleira", "chaleira elétrica"],
        },
    ),
    _pattern(
        "microwave",
        "kitchen",
        {
            "en": ["microwave", "microwave oven", "micro"],
            "sv": ["mikrovågsugn", "mikro"],
            "de": ["mikrowelle", "mikrowellenherd"],
            "fr": ["micro-ondes", "four micro-ondes"],
            "es": ["microondas", "horno microondas"],
            "it": ["microonde", "forno a microonde"],
            "nl": ["magnetron", "microgolfoven"],
            "pt": ["micro-ondas"],
        },
    ),
    _pattern(
        "dishwasher",
        "kitchen",
        {
            "en": ["dishwasher", "dish washer"],
            "sv": ["diskmaskin", "diskmaskinen"],
            "de": ["geschirrspüler", "spülmaschine"],
            "fr": ["lave-vaisselle", "lave vaisselle"],
            "es": ["lavavajillas", "lavaplatos"],
            "it": ["lavastoviglie"],
            "nl": ["vaatwasser", "afwasmachine"],
            "pt": ["máquina de lavar louça", "lava-louças"],
        },
    ),
    _pattern(
        "oven",
        "kitchen",
        {
            "en": ["oven", "electric oven", "baking oven"],
            "sv": ["ugn", "bakugn", "elugn"],
            "de": ["ofen", "backofen"],
            "fr": ["four", "four électrique"],
            "es": ["horno", "horno eléctrico"],
            "it": ["forno", "forno elettrico"],
            "nl": ["oven", "bakoven", "elektrische oven"],
            "pt": ["forno", "forno elétrico"],
        },
    ),
    _pattern(
        "cooktop",
        "kitchen",
        {
            "en": ["cooktop", "stove", "electric stove", "hob", "cooking plate"],
            "sv": ["spis", "kokplatta", "häll"],
            "de": ["kochfeld", "herd", "elektroherd"],
            "fr": ["plaque de cuisson", "cuisinière", "table de cuisson"],
            "es": ["placa de cocción", "vitrocerámica"],
            "it": ["piano cottura", "fornello", "piastra"],
            "nl": ["kookplaat", "fornuis", "elektrische kookplaat"],
            "pt": ["fogão", "placa de cozinha"],
        },
    ),
    _pattern(
        "airfryer",
        "kitchen",
        {
            "en": ["air fryer", "airfryer", "hot air fryer"],
            "sv": ["airfryer", "fritös", "varmluftsfritös"],
            "de": ["heißluftfritteuse", "airfryer"],
            "fr": ["friteuse à air", "friteuse sans huile"],
            "es": ["freidora de aire", "airfryer"],
            "it": ["friggitrice ad aria", "airfryer"],
            "nl": ["airfryer", "heteluchtfriteuse"],
            "pt": ["fritadeira de ar", "airfryer"],
        },
    ),
    _pattern(
        "toaster",
        "kitchen",
        {
            "en": ["toaster", "bread toaster", "toaster oven"],
            "sv": ["brödrost", "toaster"],
            "de": ["toaster", "brotröster"],
            "fr": ["grille-pain", "toaster"],
            "es": ["tostadora", "tostador"],
            "it": ["tostapane", "toaster"],
            "nl": ["broodrooster", "toaster"],
            "pt": ["torradeira"],
        },
    ),
    _pattern(
        "multicooker",
        "kitchen",
        {
            "en": ["multicooker", "pressure cooker", "instant pot", "slow cooker"],
            "sv": ["multicooker", "tryckkokare", "slow cooker"],
            "de": ["multikocher", "schnellkochtopf", "schongarer"],
            "fr": ["multicuiseur", "autocuiseur", "mijoteuse"],
            "es": ["olla multifunción", "olla a presión", "olla lenta"],
            "it": ["multicooker", "pentola a pressione", "slow cooker"],
            "nl": ["multicooker", "snelkookpan", "slowcooker"],
            "pt": ["panela elétrica", "panela de pressão"],
        },
    ),
    _pattern(
        "washer",
        "laundry",
        {
            "en": ["washing machine", "washer", "clothes washer"],
            "sv": ["tvättmaskin", "tvättmaskinen"],
            "de": ["waschmaschine", "wäscheschleuder"],
            "fr": ["machine à laver", "lave-linge"],
            "es": ["lavadora", "máquina de lavar"],
            "it": ["lavatrice", "lavabiancheria"],
            "nl": ["wasmachine"],
            "pt": ["máquina de lavar roupa", "lavadora"],
        },
    ),
    _pattern(
        "dryer",
        "laundry",
        {
            "en": ["dryer", "clothes dryer", "tumble dryer"],
            "sv": ["torktumlare", "torkmaskin"],
            "de": ["trockner", "wäschetrockner"],
            "fr": ["sèche-linge", "séchoir"],
            "es": ["secadora", "secadora de ropa"],
            "it": ["asciugatrice", "asciugabiancheria"],
            "nl": ["droger", "wasdroger", "droogmachine"],
            "pt": ["secadora", "máquina de secar"],
        },
    ),
    _pattern(
        "washer_and_dryer",
        "laundry",
        {
            "en": ["washer dryer", "combo washer dryer", "all in one washer"],
            "sv": ["tvätt och tork", "kombimaskin"],
            "de": ["waschtrockner", "kombigerät"],
            "fr": ["lave-linge séchant", "combiné lavage séchage"],
            "es": ["lavadora secadora", "combo lavado secado"],
            "it": ["lavasciuga"],
            "nl": ["was-droog combinatie", "wasdroogcombinatie"],
            "pt": ["lava e seca"],
        },
    ),
    _pattern(
        "fan",
        "climate",
        {
            "en": ["fan", "electric fan", "cooling fan", "ventilator"],
            "sv": ["fläkt", "kylningsfläkt", "ventilator"],
            "de": ["ventilator", "lüfter", "kühlventilator"],
            "fr": ["ventilateur", "ventilo"],
            "es": ["ventilador", "abanico eléctrico"],
            "it": ["ventilatore", "ventaglio elettrico"],
            "nl": ["ventilator", "koelventilator"],
            "pt": ["ventilador", "ventoinha"],
        },
    ),
    _pattern(
        "heater",
        "climate",
        {
            "en": ["heater", "electric heater", "space heater", "radiator"],
            "sv": ["värmare", "elvärmare", "radiator", "element"],
            "de": ["heizung", "elektroheizkörper", "radiator"],
            "fr": ["chauffage", "radiateur", "chauffage électrique"],
            "es": ["calefactor", "radiador", "estufa eléctrica"],
            "it": ["riscaldatore", "radiatore", "stufa elettrica"],
            "nl": ["verwarming", "elektrische kachel", "radiator"],
            "pt": ["aquecedor", "radiador"],
        },
    ),
    _pattern(
        "airconditioning",
        "climate",
        {
            "en": ["air conditioning", "air conditioner", "ac", "cooling"],
            "sv": ["luftkonditionering", "ac", "kylning"],
            "de": ["klimaanlage", "klimagerät", "kühlung"],
            "fr": ["climatisation", "climatiseur", "clim"],
            "es": ["aire acondicionado", "climatizador"],
            "it": ["condizionatore", "aria condizionata"],
            "nl": ["airconditioning", "airco", "koeling"],
            "pt": ["ar condicionado", "climatizador"],
        },
    ),
    _pattern(
        "tv",
        "entertainment",
        {
            "en": ["tv", "television", "smart tv", "monitor"],
            "sv": ["tv", "television", "teve"],
            "de": ["fernseher", "tv", "bildschirm"],
            "fr": ["télé", "télévision", "tv"],
            "es": ["televisión", "tv", "tele"],
            "it": ["televisione", "tv", "tele"],
            "nl": ["tv", "televisie", "beeldscherm"],
            "pt": ["televisão", "tv"],
        },
    ),
    _pattern(
        "mediaplayer",
        "entertainment",
        {
            "en": ["media player", "streaming device", "player"],
            "sv": ["mediaspelare", "streamingspelare"],
            "de": ["mediaplayer", "streaming-gerät"],
            "fr": ["lecteur multimédia", "lecteur streaming"],
            "es": ["reproductor multimedia", "dispositivo streaming"],
            "it": ["lettore multimediale", "media player"],
            "nl": ["mediaspeler", "streaming apparaat"],
            "pt": ["reprodutor multimídia"],
        },
    ),
    _pattern(
        "soundsystem",
        "entertainment",
        {
            "en": ["sound system", "audio system", "stereo", "speakers", "speaker system", "hifi"],
            "sv": ["ljudsystem", "stereoanläggning", "högtalare", "hifi"],
            "de": ["soundsystem", "stereoanlage", "lautsprechersystem", "hifi"],
            "fr": ["système audio", "chaîne hifi", "système de son"],
            "es": ["sistema de sonido", "equipo de música", "altavoces"],
            "it": ["sistema audio", "impianto stereo", "altoparlanti"],
            "nl": ["geluidssysteem", "stereoset", "luidsprekersysteem"],
            "pt": ["sistema de som", "aparelho de som"],
        },
    ),
    _pattern(
        "fridge",
        "refrigeration",
        {
            "en": ["fridge", "refrigerator", "icebox"],
            "sv": ["kylskåp", "kyl"],
            "de": ["kühlschrank", "kühlgerät"],
            "fr": ["réfrigérateur", "frigo"],
            "es": ["refrigerador", "nevera", "frigorífico"],
            "it": ["frigorifero", "frigo"],
            "nl": ["koelkast", "ijskast"],
            "pt": ["geladeira", "frigorífico"],
        },
    ),
    _pattern(
        "freezer",
        "refrigeration",
        {
            "en": ["freezer", "deep freeze", "chest freezer"],
            "sv": ["frys", "djupfrys", "frysskåp"],
            "de": ["gefrierschrank", "tiefkühltruhe"],
            "fr": ["congélateur", "surgélateur"],
            "es": ["congelador", "arcón congelador"],
            "it": ["congelatore", "freezer"],
            "nl": ["vriezer", "diepvries"],
            "pt": ["congelador", "freezer"],
        },
    ),
    _pattern(
        "boiler",
        "utility",
        {
            "en": ["boiler", "water heater", "hot water tank"],
            "sv": ["varmvattenberedare", "panna"],
            "de": ["boiler", "warmwasserbereiter"],
            "fr": ["chauffe-eau", "boiler"],
            "es": ["caldera", "calentador de agua"],
            "it": ["scaldabagno", "caldaia"],
            "nl": ["boiler", "warmwatertoestel"],
            "pt": ["caldeira", "aquecedor de água"],
        },
    ),
    _pattern(
        "evcharger",
        "utility",
        {
            "en": ["ev charger", "electric car charger", "charging station"],
            "sv": ["elbilsladdare", "laddstation", "laddbox"],
            "de": ["elektroauto-ladegerät", "ladestation", "wallbox"],
            "fr": ["chargeur voiture électrique", "borne de recharge"],
            "es": ["cargador coche eléctrico", "estación de carga"],
            "it": ["caricatore auto elettrica", "stazione di ricarica"],
            "nl": ["elektrische auto lader", "laadpaal"],
            "pt": ["carregador de carro elétrico", "estação de carregamento"],
        },
    ),
    _pattern(
        "networkrouter",
        "tech",
        {
            "en": ["router", "wifi router", "network router", "modem"],
            "sv": ["router", "wifi-router", "nätverksrouter"],
            "de": ["router", "wlan-router", "netzwerk-router"],
            "fr": ["routeur", "routeur wifi", "box internet"],
            "es": ["router", "router wifi", "enrutador"],
            "it": ["router", "router wifi", "modem"],
            "nl": ["router", "wifi router", "netwerk router"],
            "pt": ["roteador", "modem"],
        },
    ),
)

_PATTERN_BY_KEY: Mapping[str, AppliancePattern] = MappingProxyType(
    {pattern.key: pattern for pattern in APPLIANCE_PATTERNS}
)

# 电器分组的多语言说法，如 "kitchen appliances"
APPLIANCE_GROUP_TERMS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "kitchen": (
            "kitchen appliances", "kitchen appliance", "kitchen devices",
            "köksapparater", "köksmaskiner", "küchengeräte",
            "électroménager de cuisine", "appareils de cuisine",
            "electrodomésticos de cocina", "elettrodomestici da cucina",
            "keukenapparatuur", "keukenapparaten", "eletrodomésticos de cozinha",
        ),
        "laundry": (
            "laundry appliances", "laundry machines", "tvättmaskiner",
            "waschgeräte", "appareils de lavage", "wasapparaten",
        ),
        "climate": (
            "climate devices", "climate appliances", "klimatapparater",
            "klimageräte", "appareils de climatisation",
        ),
        "entertainment": (
            "entertainment devices", "entertainment", "media devices",
            "underhållning", "unterhaltungselektronik", "divertissement",
        ),
        "refrigeration": (
            "refrigeration", "cooling appliances", "kylar och frysar", "kühlgeräte",
        ),
        "utility": ("utility devices", "utilities"),
        "tech": ("network devices", "network equipment", "nätverksutrustning", "netzwerkgeräte"),
        "lighting": ("lighting",),
    }
)


@dataclass(frozen=True)
class TypeFilter:
    """解析后的设备类型过滤条件。

    `kind` 为 "group"（电器分组）、"type"（设备类别）或 "appliance"（电器键）。
    """

    kind: str
    key: str
    query: str = ""


def _term_in_name(name: str, term: str) -> bool:
    folded_term = fold(term)
    if not folded_term:
        return False
    whole_word = len(folded_term) <= _SHORT_TERM_LENGTH
    return contains_term(name, folded_term, whole_word=whole_word)


def _languages_in_order(language: str) -> list[str]:
    return [language] + [code for code in SUPPORTED_LANGUAGES if code != language]


def _first_pattern_term(name: str, language: str) -> tuple[AppliancePattern, str] | None:
    for pattern in APPLIANCE_PATTERNS:
        for term in pattern.terms.get(language, ()):
            if _term_in_name(name, term):
                return pattern, term
    return None


def identify_category(device_name: str, language: str = "en") -> str | None:
    """根据设备名推断插座所接电器。

    先在声明语言中查找，未命中再遍历其他语言，返回第一个命中的电器键。

    Args:
        device_name: 设备展示名
        language: 语言代码

    Returns:
        电器键（如 "coffeemachine"），无法推断时返回 None
    """
    name = fold(device_name)
    if not name:
        return None

    for code in _languages_in_order(language):
        found = _first_pattern_term(name, code)
        if found is None:
            continue
        pattern, term = found
        if code != language:
            logger.info(
                "appliance_fallback name=%s matched_language=%s declared=%s key=%s",
                device_name,
                code,
                language,
                pattern.key,
            )
        return pattern.key
    return None


def category_group(key: str | None) -> str:
    pattern = _PATTERN_BY_KEY.get(key or "")
    return pattern.category if pattern else "unknown"


def all_appliance_keys() -> list[str]:
    return [pattern.key for pattern in APPLIANCE_PATTERNS]


def appliance_vocabulary(language: str = "en") -> list[str]:
    """返回某语言下所有电器说法（去重、保持顺序）。"""
    vocabulary: list[str] = []
    for pattern in APPLIANCE_PATTERNS:
        for term in pattern.terms.get(language, ()):
            if term not in vocabulary:
                vocabulary.append(term)
    return vocabulary


def describe_socket(device: Device, language: str = "en") -> str:
    """生成插座设备的描述，用于 prompt 上下文。"""
    if getattr(device, "device_class", None) != SOCKET_CLASS:
        return ""
    name = fold(device.name)
    found = _first_pattern_term(name, language)
    if found is None:
        return "Socket (smart plug)"
    return f"Socket controlling {found[1]}"


def resolve_type_filter(query: str | None, language: str = "en") -> TypeFilter | None:
    """将 device_filter 文本解析为类型过滤条件。

    依次尝试：规范键本身、电器分组说法、设备类别词表、电器说法。
    """
    folded = fold(query)
    if not folded:
        return None

    if folded in APPLIANCE_GROUP_TERMS:
        return TypeFilter(kind="group", key=folded, query=query or "")
    if folded in _PATTERN_BY_KEY and folded != "light":
        return TypeFilter(kind="appliance", key=folded, query=query or "")
    device_keys = {canonical for _, canonical, _ in iter_surface_forms(DEVICE_TYPE_VOCABULARY)}
    if folded in device_keys:
        return TypeFilter(kind="type", key=folded, query=query or "")

    for group, phrases in APPLIANCE_GROUP_TERMS.items():
        if any(fold(phrase) == folded for phrase in phrases):
            return TypeFilter(kind="group", key=group, query=query or "")

    for code in _languages_in_order(language):
        for _, canonical, form in iter_surface_forms(DEVICE_TYPE_VOCABULARY, code):
            if fold(form) == folded:
                return TypeFilter(kind="type", key=canonical, query=query or "")

    for code in _languages_in_order(language):
        for pattern in APPLIANCE_PATTERNS:
            if any(fold(term) == folded for term in pattern.terms.get(code, ())):
                kind = "type" if pattern.key == "light" else "appliance"
                return TypeFilter(kind=kind, key=pattern.key, query=query or "")

    for code in _languages_in_order(language):
        for _, canonical, form in iter_surface_forms(DEVICE_TYPE_VOCABULARY, code):
            if _term_in_name(folded, form):
                return TypeFilter(kind="type", key=canonical, query=query or "")

    logger.info("type_filter_unresolved query=%s language=%s", query, language)
    return None


# 设备类别别名（目录中的 class 与规范类型键不完全一致）
_CLASS_ALIASES: Mapping[str, frozenset[str]] = MappingProxyType(
    {
        "curtain": frozenset({"curtain", "blinds", "windowcoverings", "sunshade"}),
        "thermostat": frozenset({"thermostat", "heater"}),
        "speaker": frozenset({"speaker", "amplifier"}),
        "tv": frozenset({"tv", "television"}),
    }
)


def _class_matches(device_class: str, key: str) -> bool:
    if device_class == key:
        return True
    return device_class in _CLASS_ALIASES.get(key, frozenset())


def device_matches_type(
    device: Device,
    type_filter: TypeFilter,
    language: str = "en",
) -> bool:
    """判断设备是否满足类型过滤条件。

    非插座设备只看 class；插座设备额外根据名称推断所接电器。
    """
    device_class = fold(getattr(device, "device_class", ""))

    if type_filter.kind == "group":
        if category_group(device_class) == type_filter.key and device_class != SOCKET_CLASS:
            return True
    elif _class_matches(device_class, type_filter.key):
        return True

    if device_class != SOCKET_CLASS:
        return False

    inferred = identify_category(device.name, language)
    if inferred is None:
        return False
    if type_filter.kind == "group":
        return category_group(inferred) == type_filter.key
    return inferred == type_filter.key


def filter_by_type(
    devices: Iterable[Device],
    type_filter: TypeFilter | None,
    language: str = "en",
) -> list[Device]:
    """按类型过滤设备；无过滤条件时原样返回。"""
    device_list = list(devices)
    if type_filter is None:
        return device_list
    return [device for device in device_list if device_matches_type(device, type_filter, language)]

"""Static command catalog for the travel site.

Declaration order is significant: the matcher walks commands in this order and
the first command to match (or to reach the best fuzzy score) wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Optional

from interfaces import NavigationService
from models import Command

log = logging.getLogger(__name__)

STOP_LISTENING = "dinlemeyi durdur"
SHOW_COMMANDS = "komutlar"


@dataclass(frozen=True)
class CommandEntry:
    name: str
    patterns: tuple[str, ...]
    category: str
    description: str
    reply: str
    route: Optional[str] = None


class CommandCatalog:
    def __init__(self, commands: Iterable[Command]) -> None:
        self._commands = tuple(commands)
        seen: set[str] = set()
        for command in self._commands:
            if command.name in seen:
                raise ValueError(f"duplicate command name: {command.name!r}")
            if not command.patterns or any(not p.strip() for p in command.patterns):
                raise ValueError(f"command {command.name!r} has an empty pattern")
            seen.add(command.name)

    def __iter__(self) -> Iterator[Command]:
        return iter(self._commands)

    def __len__(self) -> int:
        return len(self._commands)

    @property
    def commands(self) -> tuple[Command, ...]:
        return self._commands

    def get(self, name: str) -> Optional[Command]:
        for command in self._commands:
            if command.name == name:
                return command
        return None

    def by_category(self) -> dict[str, list[Command]]:
        grouped: dict[str, list[Command]] = {}
        for command in self._commands:
            grouped.setdefault(command.category, []).append(command)
        return grouped


TRAVEL_COMMANDS: tuple[CommandEntry, ...] = (
    # Navigasyon
    CommandEntry("ana sayfa", ("ana sayfa", "ana sayfaya git", "anasayfa", "home", "ev"),
                 "Navigasyon", "Ana sayfaya git", "Tabii! Hemen ana sayfaya götürüyorum.", "/"),
    CommandEntry("oteller", ("oteller", "otellere git", "otel ara", "hotels", "otel bul"),
                 "Navigasyon", "Oteller sayfasına git", "Harika! Size en iyi otelleri gösteriyorum.", "/hotels"),
    CommandEntry("uçuşlar", ("uçuşlar", "uçuş ara", "uçuşlara git", "flights", "uçak bileti"),
                 "Navigasyon", "Uçuşlar sayfasına git", "Uygun uçuşları hemen buluyorum!", "/flights"),
    CommandEntry("turlar", ("turlar", "turlara git", "tur ara", "tours", "gezi turları"),
                 "Navigasyon", "Turlar sayfasına git", "Muhteşem turları gösteriyorum.", "/tours"),
    CommandEntry("aktiviteler", ("aktiviteler", "aktivitelere git", "aktivite ara", "activities", "etkinlikler"),
                 "Navigasyon", "Aktiviteler sayfasına git", "Heyecan verici aktiviteleri keşfedelim!", "/activities"),
    CommandEntry("destinasyonlar", ("destinasyonlar", "destinasyonlara git", "destinations", "şehirler", "yerler"),
                 "Navigasyon", "Destinasyonlar sayfasına git", "Harika destinasyonları gösteriyorum.", "/destinations"),
    CommandEntry("sepet", ("sepet", "sepete git", "sepetim", "cart", "alışveriş sepeti"),
                 "Navigasyon", "Sepete git", "Sepetinizi kontrol edelim.", "/cart"),
    CommandEntry("rezervasyonlar", ("rezervasyonlar", "rezervasyonlarım", "bookings", "my bookings", "randevularım"),
                 "Navigasyon", "Rezervasyonlar sayfasına git", "Rezervasyonlarınızı gösteriyorum.", "/bookings"),
    CommandEntry("profil", ("profil", "profilim", "profile", "hesabım", "hesap"),
                 "Navigasyon", "Profil sayfasına git", "Hemen profilinize götürüyorum.", "/profile/dashboard"),
    # Özellikler
    CommandEntry("yapay zeka asistan", ("yapay zeka", "ai asistan", "asistan", "yardım", "assistant",
                                        "yapay zeka yardımcısı"),
                 "Özellikler", "AI Asistan'ı aç",
                 "Yapay zeka asistanını başlatıyorum. Size nasıl yardımcı olabilirim?", "/ai-assistant"),
    CommandEntry("gezi planlayıcı", ("gezi planla", "planlayıcı", "trip planner", "plan yap", "tatil planla"),
                 "Özellikler", "Gezi planlayıcısını aç",
                 "Harika! Gezi planlayıcınızı açıyorum. Hayalinizdeki tatili planlayalım!", "/trip-planner"),
    CommandEntry("sanal tur", ("sanal tur", "virtual tour", "vr", "sanal gezinti", "sanal gezi"),
                 "Özellikler", "Sanal turları aç", "Sanal turlarla dünyayı keşfedelim!", "/virtual-tours"),
    # Arama
    CommandEntry("istanbul ara", ("istanbul", "istanbul ara", "istanbula git", "istanbul otelleri", "istanbul otel"),
                 "Arama", "İstanbul'da ara", "İstanbul için en güzel otelleri buluyorum!",
                 "/hotels?destination=istanbul"),
    CommandEntry("ankara ara", ("ankara", "ankara ara", "ankaraya git", "ankara otelleri", "ankara otel"),
                 "Arama", "Ankara'da ara", "Ankara için harika otel seçenekleri getiriyorum!",
                 "/hotels?destination=ankara"),
    CommandEntry("antalya ara", ("antalya", "antalya ara", "antalyaya git", "antalya otelleri", "antalya otel"),
                 "Arama", "Antalya'da ara", "Antalya için muhteşem otel fırsatlarını gösteriyorum!",
                 "/hotels?destination=antalya"),
    # Hesap
    CommandEntry("giriş yap", ("giriş yap", "login", "oturum aç", "giriş"),
                 "Hesap", "Giriş yap", "Giriş sayfasına yönlendiriyorum. Hoş geldiniz!", "/auth/signin"),
    CommandEntry("kayıt ol", ("kayıt ol", "üye ol", "register", "sign up", "hesap aç"),
                 "Hesap", "Kayıt ol", "Kayıt sayfasına götürüyorum. LyDian ailesine hoş geldiniz!", "/auth/signup"),
    # Destek
    CommandEntry("yardım", ("yardım", "help", "destek", "support", "yardım et"),
                 "Destek", "Yardım al", "Destek ekibimiz size yardımcı olmak için hazır!", "/support"),
    # Sistem
    CommandEntry(STOP_LISTENING, ("dur", "durdur", "dinleme", "stop", "kapat", "sus"),
                 "Sistem", "Dinlemeyi durdur", "Anlaşıldı! İhtiyacınız olduğunda tekrar buradayım."),
    CommandEntry(SHOW_COMMANDS, ("komutlar", "neler yapabilirsin", "yardım", "commands", "ne yaparsın"),
                 "Sistem", "Komutları göster", "Size yardımcı olabileceğim tüm komutları gösteriyorum!"),
    # Arama
    CommandEntry("izmir ara", ("izmir", "izmir ara", "izmire git", "izmir otelleri", "izmir otel"),
                 "Arama", "İzmir'de ara", "İzmir için harika otel seçenekleri buluyorum!",
                 "/hotels?destination=izmir"),
    CommandEntry("bodrum ara", ("bodrum", "bodrum ara", "bodruma git", "bodrum otelleri", "bodrum otel"),
                 "Arama", "Bodrum'da ara", "Bodrum için mükemmel otel fırsatları getiriyorum!",
                 "/hotels?destination=bodrum"),
    CommandEntry("çeşme ara", ("çeşme", "cesme", "çeşme ara", "çeşmeye git", "çeşme otelleri"),
                 "Arama", "Çeşme'de ara", "Çeşme için muhteşem oteller buluyorum!",
                 "/hotels?destination=cesme"),
    CommandEntry("kapadokya ara", ("kapadokya", "kapadokya ara", "kapadokyaya git", "kapadokya otelleri"),
                 "Arama", "Kapadokya'da ara", "Kapadokya için eşsiz otel seçenekleri gösteriyorum!",
                 "/hotels?destination=cappadocia"),
    CommandEntry("favorilerim", ("favorilerim", "favorites", "beğendiklerim", "favori", "kaydettiklerim"),
                 "Navigasyon", "Favorileri göster", "Favori listenizi gösteriyorum.", "/favorites"),
    CommandEntry("restaurant ara", ("restaurant", "restaurant ara", "restoranlar", "yemek", "restoran bul"),
                 "Arama", "Restaurant ara", "Size en iyi restoranları buluyorum!", "/destinations"),
    CommandEntry("transfer", ("transfer", "araç kirala", "car rental", "transfer ara", "ulaşım"),
                 "Navigasyon", "Transfer/Araç Kiralama",
                 "Transfer ve araç kiralama seçeneklerini gösteriyorum.", "/transfers"),
    CommandEntry("deneyimler", ("deneyimler", "experiences", "deneyim ara", "yerel deneyimler"),
                 "Navigasyon", "Deneyimleri keşfet", "Unutulmaz deneyimler sizi bekliyor!", "/experiences"),
    CommandEntry("premium üyelik", ("premium", "premium üyelik", "premium ol", "özel avantajlar"),
                 "Özellikler", "Premium üyelik", "Premium üyelik avantajlarını gösteriyorum!", "/premium"),
    CommandEntry("sosyal", ("sosyal", "paylaş", "social", "arkadaşlarımla paylaş"),
                 "Özellikler", "Sosyal özellikler", "Sosyal özelliklere erişiyorsunuz.", "/social"),
    CommandEntry("blockchain", ("blockchain", "kripto", "crypto", "blockchain özelliği"),
                 "Özellikler", "Blockchain özellikleri",
                 "Blockchain tabanlı güvenli rezervasyon sistemine hoş geldiniz!", "/blockchain"),
    CommandEntry("görsel arama", ("görsel arama", "resim ara", "visual search", "fotoğraf ara"),
                 "Arama", "Görsel arama", "Görsel arama özelliğini başlatıyorum!", "/visual-search"),
    CommandEntry("hakkımızda", ("hakkımızda", "about", "about us", "bilgi"),
                 "Bilgi", "Hakkımızda", "Travel LyDian hakkında bilgi sayfasına götürüyorum.", "/about"),
    CommandEntry("iletişim", ("iletişim", "contact", "bize ulaşın", "iletişime geç"),
                 "Destek", "İletişim", "İletişim sayfasına yönlendiriyorum.", "/contact"),
    CommandEntry("değerlendirmeler", ("değerlendirmeler", "reviews", "yorumlar", "review"),
                 "Bilgi", "Değerlendirmeler", "Kullanıcı değerlendirmelerini gösteriyorum.", "/reviews"),
    CommandEntry("seyahatlerim", ("seyahatlerim", "my trips", "gezilerim", "trip", "planlarım"),
                 "Navigasyon", "Seyahatlerim", "Seyahat planlarınızı gösteriyorum.", "/my-trips"),
    CommandEntry("ödeme", ("ödeme", "checkout", "ödeme yap", "satın al"),
                 "İşlem", "Ödeme sayfası",
                 "Ödeme sayfasına yönlendiriyorum. Güvenli ödeme için hazırız!", "/checkout"),
    CommandEntry("grup seyahati", ("grup seyahati", "group travel", "grup rezervasyon", "grup tatili"),
                 "Özellikler", "Grup seyahati", "Grup seyahati organizasyonuna hoş geldiniz!", "/group-travel"),
    CommandEntry("kurumsal", ("kurumsal", "business", "iş seyahati", "corporate"),
                 "Özellikler", "Kurumsal seyahat",
                 "Kurumsal seyahat çözümlerimize göz atıyorsunuz.", "/business"),
    CommandEntry("animasyon", ("animasyon", "animated", "showcase", "görsel tur"),
                 "Özellikler", "Animasyon Showcase",
                 "Harika animasyon showcase'umuzu gösteriyorum!", "/animated-showcase"),
)


def build_travel_catalog(
    navigator: NavigationService,
    speak: Callable[[str], None],
    stop_listening: Optional[Callable[[], None]] = None,
    show_commands: Optional[Callable[[], None]] = None,
    entries: Iterable[CommandEntry] = TRAVEL_COMMANDS,
) -> CommandCatalog:
    """Bind every entry to a zero-argument action and return the catalog."""
    return CommandCatalog(
        Command(
            name=entry.name,
            patterns=entry.patterns,
            category=entry.category,
            action=_bind_action(entry, navigator, speak, stop_listening, show_commands),
            description=entry.description,
        )
        for entry in entries
    )


def _bind_action(
    entry: CommandEntry,
    navigator: NavigationService,
    speak: Callable[[str], None],
    stop_listening: Optional[Callable[[], None]],
    show_commands: Optional[Callable[[], None]],
) -> Callable[[], None]:
    def action() -> None:
        if entry.route is not None:
            log.info("Navigating to %s for command %r", entry.route, entry.name)
            navigator.go_to(entry.route)
        elif entry.name == STOP_LISTENING and stop_listening is not None:
            stop_listening()
        elif entry.name == SHOW_COMMANDS and show_commands is not None:
            show_commands()
        speak(entry.reply)

    return action


def format_help(catalog: CommandCatalog) -> str:
    """Plain-text command list grouped by category, for help dialogs."""
    sections = []
    for category, commands in catalog.by_category().items():
        lines = [f"{category}:"]
        lines += [f"  • {c.description} — “{c.patterns[0]}”" for c in commands]
        sections.append("\n".join(lines))
    return "\n\n".join(sections)

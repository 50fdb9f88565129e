"""
Variant XO Platform - Word Dictionary

単語三目並べで使用する3文字単語の辞書を提供します。

- DEFAULT_WORDS: 組み込みの小さな単語集合
- load_words(): 1行1単語のテキストファイルから辞書を読み込む
"""

from pathlib import Path
from typing import Union
import logging


logger = logging.getLogger(__name__)

WORD_LENGTH = 3

DEFAULT_WORDS: frozenset[str] = frozenset("""
ACE ACT ADD AGE AGO AID AIM AIR ALE ALL AND ANT ANY APE ARC ARE ARK ARM ART
ASH ASK ATE AWE AXE BAD BAG BAN BAR BAT BED BEE BET BIG BIN BIT BOW BOX BOY
BUD BUG BUN BUS BUT BUY CAB CAN CAP CAR CAT COD COT COW CRY CUB CUP CUT DAY
DEN DEW DID DIG DIM DOG DOT DRY DUE DUG EAR EAT EEL EGG ELF ELM END ERA EVE
EYE FAN FAR FAT FED FEW FIG FIN FIR FIT FIX FLY FOG FOR FOX FUN FUR GAP GAS
GEM GET GOT GUM GUN GUT GUY HAM HAS HAT HEN HER HID HIM HIP HIS HIT HOG HOT
HOW HUB HUG HUT ICE ILL INK INN ION ITS JAM JAR JAW JET JOB JOG JOY KEG KEY
KID KIN KIT LAB LAD LAP LAW LAY LED LEG LET LID LIE LIP LIT LOG LOT LOW MAD
MAN MAP MAT MAY MEN MET MIX MOB MOM MOP MUD MUG NAP NET NEW NOD NOR NOT NOW
NUT OAK OAR OAT ODD OFF OIL OLD ONE OPT ORE OUR OUT OWL OWN PAD PAN PAT PAW
PAY PEA PEN PET PIE PIG PIN PIT POD POT PRY PUB PUN PUP PUT RAG RAM RAN RAT
RAW RAY RED RIB RID RIM RIP ROB ROD ROT ROW RUB RUG RUN SAD SAG SAT SAW SAY
SEA SEE SET SEW SHE SHY SIP SIR SIT SIX SKY SLY SOB SON SOW SOY SPA SPY SUM
SUN TAB TAG TAN TAP TAR TEA TEN THE TIE TIN TIP TOE TON TOO TOP TOW TOY TUB
TUG TWO URN USE VAN VAT VET VOW WAR WAS WAX WAY WEB WED WET WHO WHY WIG WIN
WIT WON WOO YAK YAM YES YET YOU ZAP ZEN ZIP ZOO
""".split())


def normalize_word(word: str) -> str:
    """単語を大文字化し前後の空白を除去"""
    return word.strip().upper()


def load_words(path: Union[str, Path]) -> frozenset[str]:
    """
    テキストファイルから辞書を読み込む

    1行に1単語。3文字のアルファベット以外の行は無視します。

    Args:
        path: 辞書ファイルのパス

    Returns:
        大文字化された単語の集合

    Raises:
        FileNotFoundError: ファイルが存在しない場合
    """
    words = set()
    skipped = 0
    with Path(path).open(encoding="utf-8") as f:
        for line in f:
            word = normalize_word(line)
            if not word:
                continue
            if len(word) == WORD_LENGTH and word.isascii() and word.isalpha():
                words.add(word)
            else:
                skipped += 1

    logger.info("Loaded %d words from %s (%d skipped)", len(words), path, skipped)
    return frozenset(words)

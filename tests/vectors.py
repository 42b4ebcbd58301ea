"""Fixed transaction and key vectors from the Bitcoin testnet."""

from __future__ import annotations

# Anchoring transaction: 3-of-4 multisig input, 3000 sat to the multisig
# address, payload (height 0, hash f1cb...0a96)
ANCHORING_TX_HEX = (
    "01000000014970bd8d76edf52886f62e3073714bddc6c33bccebb6b1d06db8c87fb1103ba000000000fd670100"
    "483045022100e6ef3de83437c8dc33a8099394b7434dfb40c73631fc4b0378bd6fb98d8f42b002205635b265"
    "f2bfaa6efc5553a2b9e98c2eabdfad8e8de6cdb5d0d74e37f1e198520147304402203bb845566633b726e413"
    "22743677694c42b37a1a9953c5b0b44864d9b9205ca10220651b7012719871c36d0f89538304d3f358da12b0"
    "2dab2b4d74f2981c8177b69601473044022052ad0d6c56aa6e971708f079073260856481aeee6a48b231bc07"
    "f43d6b02c77002203a957608e4fbb42b239dd99db4e243776cc55ed8644af21fa80fd9be77a59a60014c8b53"
    "2103475ab0e9cfc6015927e662f6f8f088de12287cee1a3237aeb497d1763064690c2102a63948315dda6650"
    "6faf4fecd54b085c08b13932a210fa5806e3691c69819aa0210230cb2805476bf984d2236b56ff5da548dfe1"
    "16daf2982608d898d9ecb3dceb4921036e4777c8d19ccaa67334491e777f221d37fd85d5786a4e5214b281cf"
    "0133d65e54aeffffffff02b80b00000000000017a914bff50e89fa259d83f78f2e796f57283ca10d6e678700"
    "000000000000002c6a2a01280000000000000000f1cb806d27e367f1cac835c22c8cc24c402a019e2d3ea82f"
    "7f841c308d830a9600000000"
)

# Funding transaction: 4000 sat to the multisig address plus P2PKH change
FUNDING_TX_HEX = (
    "01000000019532a4022a22226a6f694c3f21216b2c9f5c1c79007eb7d3be06bc2f1f9e52fb000000006a4730"
    "4402203661efd05ca422fad958b534dbad2e1c7db42bbd1e73e9b91f43a2f7be2f92040220740cf883273978"
    "358f25ca5dd5700cce5e65f4f0a0be2e1a1e19a8f168095400012102ae1b03b0f596be41a247080437a50f4d"
    "8e825b170770dcb4e5443a2eb2ecab2afeffffff02a00f00000000000017a914bff50e89fa259d83f78f2e79"
    "6f57283ca10d6e678716e1ff05000000001976a91402f5d7475a10a9c24cea32575bd8993d3fabbfd388ac08"
    "9e1000"
)

# Ordinary payment: two P2PKH outputs
OTHER_TX_HEX = (
    "0100000001cea827387bc0bb1b5e6afa6e6d557123e4432e47bad8c2d94214a9cd1e2e074b010000006a4730"
    "44022034d463312dd75445ad078b1159a75c0b148388b36686b69da8aecca863e63dc3022071ef86a064bd15"
    "f11ec89059072bbd3e3d3bb6c5e9b10712e0e2dc6710520bb00121035e63a48d34250dbbcc58fdc0ab63b901"
    "769e71035e19e0eee1a87d433a96723afeffffff0296a6f80b000000001976a914b5d7055cfdacc803e5547b"
    "981faa693c5aaa813b88aca0860100000000001976a914f5548cb02bb197f071934a0ea3eeb5878cb59dff88"
    "ac03a21000"
)

PRIVATE_KEYS_WIF = [
    "cVC9eJN5peJemWn1byyWcWDevg6xLNXtACjHJWmrR5ynsCu8mkQE",
    "cMk66oMazTgquBVaBLHzDi8FMgAaRN3tSf6iZykf9bCh3D3FsLX1",
    "cT2S5KgUQJ41G6RnakJ2XcofvoxK68L9B44hfFTnH4ddygaxi7rc",
    "cRUKB8Nrhxwd5Rh6rcX3QK1h7FosYPw5uzEsuPpzLcDNErZCzSaj",
]

PUBLIC_KEYS_HEX = [
    "03475ab0e9cfc6015927e662f6f8f088de12287cee1a3237aeb497d1763064690c",
    "02a63948315dda66506faf4fecd54b085c08b13932a210fa5806e3691c69819aa0",
    "0230cb2805476bf984d2236b56ff5da548dfe116daf2982608d898d9ecb3dceb49",
    "036e4777c8d19ccaa67334491e777f221d37fd85d5786a4e5214b281cf0133d65e",
]

MULTISIG_SCRIPT_HASH = bytes.fromhex("bff50e89fa259d83f78f2e796f57283ca10d6e67")

BLOCK_HASH = bytes.fromhex("164d236bbdb766e64cec57847e3a0509d4fc77fa9c17b7e61e48f7a3eaa8dbc9")


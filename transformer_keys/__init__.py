"""transformer_keys: signing identities for omniverse transformers.

Key sources: transformer_keys/signer/keysource.py (AWS KMS or local secp256k1)
Codec:       transformer_keys/signer/codec.py     (SubjectPublicKeyInfo -> hex forms)
Address:     transformer_keys/signer/address.py   (keccak256 -> 20 bytes)
Store:       transformer_keys/store.py            (secret + config JSON documents)
Provision:   transformer_keys/provision.py        (the whole flow)
"""

from transformer_keys.errors import (
    ConfigurationError,
    DecodeError,
    PersistenceError,
    ProviderError,
    TransformerKeysError,
)
from transformer_keys.models import (
    CustodialSigner,
    Identity,
    LocalSigner,
    PublicKeyForms,
)
from transformer_keys.provision import Provisioner
from transformer_keys.store import IdentityStore

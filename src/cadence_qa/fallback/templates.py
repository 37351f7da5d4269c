"""Cadence 1.0 contract templates used when generation cannot recover.

Every template renders to a complete contract: balanced brackets, an init()
that sets all state, events and no placeholder values. Templates are Jinja2
sources with a single ``name`` variable (the contract name).
"""

from __future__ import annotations

from dataclasses import dataclass

from cadence_qa.models import ContractCategory

FALLBACK_MARKER = "generated using a fallback template"

HEADER = """\
// This contract was generated using a fallback template ({{ template_id }})
// It covers the essentials of its contract type with concrete values only
// Review and customize it before deploying
"""


@dataclass(frozen=True)
class FallbackTemplate:
    """A named contract template for one category."""

    template_id: str
    category: ContractCategory
    default_name: str
    source: str


NFT_TEMPLATE = """\
import NonFungibleToken from 0x1d7e57aa55817448
import MetadataViews from 0x1d7e57aa55817448

access(all) contract {{ name }}: NonFungibleToken {

    access(all) var totalSupply: UInt64

    access(all) event ContractInitialized()
    access(all) event Minted(id: UInt64, name: String)

    access(all) let CollectionStoragePath: StoragePath
    access(all) let CollectionPublicPath: PublicPath
    access(all) let MinterStoragePath: StoragePath

    access(all) resource NFT: NonFungibleToken.NFT {
        access(all) let id: UInt64
        access(all) let name: String
        access(all) let description: String
        access(all) let thumbnail: String

        init(id: UInt64, name: String, description: String, thumbnail: String) {
            self.id = id
            self.name = name
            self.description = description
            self.thumbnail = thumbnail
        }

        access(all) view fun getViews(): [Type] {
            return [Type<MetadataViews.Display>()]
        }

        access(all) fun resolveView(_ view: Type): AnyStruct? {
            if view == Type<MetadataViews.Display>() {
                return MetadataViews.Display(
                    name: self.name,
                    description: self.description,
                    thumbnail: MetadataViews.HTTPFile(url: self.thumbnail)
                )
            }
            return nil
        }

        access(all) fun createEmptyCollection(): @{NonFungibleToken.Collection} {
            return <- {{ name }}.createEmptyCollection(nftType: Type<@{{ name }}.NFT>())
        }
    }

    access(all) resource Collection: NonFungibleToken.Collection {
        access(all) var ownedNFTs: @{UInt64: {NonFungibleToken.NFT}}

        init() {
            self.ownedNFTs <- {}
        }

        access(NonFungibleToken.Withdraw) fun withdraw(withdrawID: UInt64): @{NonFungibleToken.NFT} {
            let token <- self.ownedNFTs.remove(key: withdrawID)
                ?? panic("NFT not found in this collection")
            return <- token
        }

        access(all) fun deposit(token: @{NonFungibleToken.NFT}) {
            let nft <- token as! @{{ name }}.NFT
            let id = nft.id
            let oldToken <- self.ownedNFTs[id] <- nft
            destroy oldToken
        }

        access(all) view fun getIDs(): [UInt64] {
            return self.ownedNFTs.keys
        }

        access(all) view fun getLength(): Int {
            return self.ownedNFTs.length
        }

        access(all) view fun borrowNFT(_ id: UInt64): &{NonFungibleToken.NFT}? {
            return &self.ownedNFTs[id]
        }

        access(all) fun createEmptyCollection(): @{NonFungibleToken.Collection} {
            return <- create Collection()
        }
    }

    access(all) fun createEmptyCollection(nftType: Type): @{NonFungibleToken.Collection} {
        return <- create Collection()
    }

    access(all) view fun getContractViews(resourceType: Type?): [Type] {
        return [Type<MetadataViews.Display>()]
    }

    access(all) fun resolveContractView(resourceType: Type?, viewType: Type): AnyStruct? {
        return nil
    }

    access(all) resource NFTMinter {
        access(all) fun mintNFT(name: String, description: String, thumbnail: String): @NFT {
            pre {
                name.length > 0: "NFT name cannot be empty"
            }
            {{ name }}.totalSupply = {{ name }}.totalSupply + 1
            let nft <- create NFT(
                id: {{ name }}.totalSupply,
                name: name,
                description: description,
                thumbnail: thumbnail
            )
            emit Minted(id: nft.id, name: name)
            return <- nft
        }
    }

    init() {
        self.totalSupply = 0
        self.CollectionStoragePath = /storage/{{ name }}Collection
        self.CollectionPublicPath = /public/{{ name }}Collection
        self.MinterStoragePath = /storage/{{ name }}Minter

        self.account.storage.save(<- create Collection(), to: self.CollectionStoragePath)
        let cap = self.account.capabilities.storage.issue<&Collection>(self.CollectionStoragePath)
        self.account.capabilities.publish(cap, at: self.CollectionPublicPath)
        self.account.storage.save(<- create NFTMinter(), to: self.MinterStoragePath)

        emit ContractInitialized()
    }
}
"""

FUNGIBLE_TOKEN_TEMPLATE = """\
import FungibleToken from 0xf233dcee88fe0abe

access(all) contract {{ name }}: FungibleToken {

    access(all) var totalSupply: UFix64

    access(all) event TokensMinted(amount: UFix64)
    access(all) event TokensBurned(amount: UFix64)

    access(all) let VaultStoragePath: StoragePath
    access(all) let ReceiverPublicPath: PublicPath
    access(all) let AdminStoragePath: StoragePath

    access(all) resource Vault: FungibleToken.Vault {
        access(all) var balance: UFix64

        init(balance: UFix64) {
            self.balance = balance
        }

        access(FungibleToken.Withdraw) fun withdraw(amount: UFix64): @{FungibleToken.Vault} {
            pre {
                amount > 0.0: "Withdraw amount must be positive"
                self.balance >= amount: "Insufficient balance"
            }
            self.balance = self.balance - amount
            return <- create Vault(balance: amount)
        }

        access(all) fun deposit(from: @{FungibleToken.Vault}) {
            let vault <- from as! @{{ name }}.Vault
            self.balance = self.balance + vault.balance
            vault.balance = 0.0
            destroy vault
        }

        access(all) view fun isAvailableToWithdraw(amount: UFix64): Bool {
            return self.balance >= amount
        }

        access(all) fun createEmptyVault(): @{FungibleToken.Vault} {
            return <- create Vault(balance: 0.0)
        }
    }

    access(all) fun createEmptyVault(vaultType: Type): @{FungibleToken.Vault} {
        return <- create Vault(balance: 0.0)
    }

    access(all) resource Administrator {
        access(all) fun mintTokens(amount: UFix64): @{{ name }}.Vault {
            pre {
                amount > 0.0: "Mint amount must be positive"
            }
            {{ name }}.totalSupply = {{ name }}.totalSupply + amount
            emit TokensMinted(amount: amount)
            return <- create Vault(balance: amount)
        }

        access(all) fun burnTokens(from: @{{ name }}.Vault) {
            let amount = from.balance
            {{ name }}.totalSupply = {{ name }}.totalSupply - amount
            destroy from
            emit TokensBurned(amount: amount)
        }
    }

    init() {
        self.totalSupply = 0.0
        self.VaultStoragePath = /storage/{{ name }}Vault
        self.ReceiverPublicPath = /public/{{ name }}Receiver
        self.AdminStoragePath = /storage/{{ name }}Admin

        self.account.storage.save(<- create Vault(balance: 0.0), to: self.VaultStoragePath)
        let receiver = self.account.capabilities.storage.issue<&{FungibleToken.Receiver}>(self.VaultStoragePath)
        self.account.capabilities.publish(receiver, at: self.ReceiverPublicPath)
        self.account.storage.save(<- create Administrator(), to: self.AdminStoragePath)
    }
}
"""

MARKETPLACE_TEMPLATE = """\
import FungibleToken from 0xf233dcee88fe0abe

access(all) contract {{ name }} {

    access(all) event ListingCreated(listingID: UInt64, price: UFix64, seller: Address)
    access(all) event ListingPurchased(listingID: UInt64, price: UFix64, buyer: Address)
    access(all) event ListingRemoved(listingID: UInt64)

    access(all) let commissionRate: UFix64
    access(self) var nextListingID: UInt64
    access(self) let listings: {UInt64: Listing}

    access(all) struct Listing {
        access(all) let listingID: UInt64
        access(all) let itemID: UInt64
        access(all) let price: UFix64
        access(all) let seller: Address

        init(listingID: UInt64, itemID: UInt64, price: UFix64, seller: Address) {
            self.listingID = listingID
            self.itemID = itemID
            self.price = price
            self.seller = seller
        }
    }

    access(all) fun createListing(itemID: UInt64, price: UFix64, owner: Address): UInt64 {
        pre {
            price > 0.0: "Listing price must be positive"
        }
        let listingID = self.nextListingID
        self.listings[listingID] = Listing(listingID: listingID, itemID: itemID, price: price, seller: owner)
        self.nextListingID = self.nextListingID + 1
        emit ListingCreated(listingID: listingID, price: price, seller: owner)
        return listingID
    }

    access(all) fun removeListing(listingID: UInt64, owner: Address) {
        let listing = self.listings[listingID] ?? panic("Listing does not exist")
        assert(listing.seller == owner, message: "Only the seller can remove a listing")
        self.listings.remove(key: listingID)
        emit ListingRemoved(listingID: listingID)
    }

    access(all) fun purchase(listingID: UInt64, payment: @{FungibleToken.Vault}, buyer: Address) {
        let listing = self.listings[listingID] ?? panic("Listing does not exist")
        assert(payment.balance == listing.price, message: "Payment does not match the listing price")

        let receiver = getAccount(listing.seller).capabilities
            .borrow<&{FungibleToken.Receiver}>(/public/flowTokenReceiver)
            ?? panic("Seller cannot receive payment")
        receiver.deposit(from: <- payment)

        self.listings.remove(key: listingID)
        emit ListingPurchased(listingID: listingID, price: listing.price, buyer: buyer)
    }

    access(all) view fun getCommission(price: UFix64): UFix64 {
        return price * self.commissionRate
    }

    access(all) view fun getListingIDs(): [UInt64] {
        return self.listings.keys
    }

    access(all) view fun getListing(listingID: UInt64): Listing? {
        return self.listings[listingID]
    }

    init() {
        self.commissionRate = 0.025
        self.nextListingID = 1
        self.listings = {}
    }
}
"""

DAO_TEMPLATE = """\
access(all) contract {{ name }} {

    access(all) event ProposalCreated(id: UInt64, title: String)
    access(all) event VoteCast(proposalID: UInt64, voter: Address, support: Bool)
    access(all) event ProposalExecuted(id: UInt64)
    access(all) event MemberAdded(member: Address)

    access(all) let votingPeriod: UFix64
    access(all) let quorum: UInt64
    access(self) var nextProposalID: UInt64
    access(self) let proposals: {UInt64: Proposal}
    access(self) let members: {Address: Bool}

    access(all) struct Proposal {
        access(all) let id: UInt64
        access(all) let title: String
        access(all) let endTime: UFix64
        access(all) var votesFor: UInt64
        access(all) var votesAgainst: UInt64
        access(all) var executed: Bool
        access(all) let voters: {Address: Bool}

        init(id: UInt64, title: String, endTime: UFix64) {
            self.id = id
            self.title = title
            self.endTime = endTime
            self.votesFor = 0
            self.votesAgainst = 0
            self.executed = false
            self.voters = {}
        }

        access(contract) fun recordVote(voter: Address, support: Bool) {
            pre {
                self.voters[voter] == nil: "Account has already voted"
            }
            self.voters[voter] = support
            if support {
                self.votesFor = self.votesFor + 1
            } else {
                self.votesAgainst = self.votesAgainst + 1
            }
        }

        access(contract) fun markExecuted() {
            self.executed = true
        }
    }

    access(account) fun addMember(member: Address) {
        self.members[member] = true
        emit MemberAdded(member: member)
    }

    access(all) fun createProposal(title: String, proposer: Address): UInt64 {
        pre {
            self.members[proposer] == true: "Only members can create proposals"
            title.length > 0: "Proposal title cannot be empty"
        }
        let id = self.nextProposalID
        let endTime = getCurrentBlock().timestamp + self.votingPeriod
        self.proposals[id] = Proposal(id: id, title: title, endTime: endTime)
        self.nextProposalID = self.nextProposalID + 1
        emit ProposalCreated(id: id, title: title)
        return id
    }

    access(all) fun vote(proposalID: UInt64, voter: Address, support: Bool) {
        pre {
            self.members[voter] == true: "Only members can vote"
        }
        var proposal = self.proposals[proposalID] ?? panic("Proposal does not exist")
        assert(getCurrentBlock().timestamp <= proposal.endTime, message: "Voting period has ended")
        proposal.recordVote(voter: voter, support: support)
        self.proposals[proposalID] = proposal
        emit VoteCast(proposalID: proposalID, voter: voter, support: support)
    }

    access(all) fun executeProposal(proposalID: UInt64) {
        var proposal = self.proposals[proposalID] ?? panic("Proposal does not exist")
        assert(!proposal.executed, message: "Proposal was already executed")
        assert(getCurrentBlock().timestamp > proposal.endTime, message: "Voting is still open")
        assert(proposal.votesFor + proposal.votesAgainst >= self.quorum, message: "Quorum not reached")
        assert(proposal.votesFor > proposal.votesAgainst, message: "Proposal was rejected")
        proposal.markExecuted()
        self.proposals[proposalID] = proposal
        emit ProposalExecuted(id: proposalID)
    }

    access(all) view fun getProposal(proposalID: UInt64): Proposal? {
        return self.proposals[proposalID]
    }

    init() {
        self.votingPeriod = 604800.0
        self.quorum = 3
        self.nextProposalID = 1
        self.proposals = {}
        self.members = {self.account.address: true}
    }
}
"""

DEFI_TEMPLATE = """\
import FungibleToken from 0xf233dcee88fe0abe

access(all) contract {{ name }} {

    access(all) event Staked(staker: Address, amount: UFix64)
    access(all) event Unstaked(staker: Address, amount: UFix64)

    access(all) struct StakePool {
        access(all) var totalStaked: UFix64
        access(all) let rewardRate: UFix64

        init(rewardRate: UFix64) {
            self.totalStaked = 0.0
            self.rewardRate = rewardRate
        }

        access(contract) fun add(amount: UFix64) {
            self.totalStaked = self.totalStaked + amount
        }

        access(contract) fun remove(amount: UFix64) {
            self.totalStaked = self.totalStaked - amount
        }
    }

    access(all) var pool: StakePool
    access(self) let stakes: {Address: UFix64}

    access(all) fun stake(staker: Address, amount: UFix64) {
        pre {
            amount > 0.0: "Stake amount must be positive"
        }
        self.stakes[staker] = (self.stakes[staker] ?? 0.0) + amount
        self.pool.add(amount: amount)
        emit Staked(staker: staker, amount: amount)
    }

    access(all) fun unstake(staker: Address, amount: UFix64, minAmountOut: UFix64) {
        let staked = self.stakes[staker] ?? panic("Nothing staked for this account")
        assert(amount <= staked, message: "Cannot unstake more than the staked amount")
        assert(amount >= minAmountOut, message: "Unstaked amount is below the requested minimum")
        self.stakes[staker] = staked - amount
        self.pool.remove(amount: amount)
        emit Unstaked(staker: staker, amount: amount)
    }

    access(all) view fun getStake(staker: Address): UFix64 {
        return self.stakes[staker] ?? 0.0
    }

    access(all) view fun pendingReward(staker: Address): UFix64 {
        return self.getStake(staker: staker) * self.pool.rewardRate
    }

    init() {
        self.pool = StakePool(rewardRate: 0.05)
        self.stakes = {}
    }
}
"""

UTILITY_TEMPLATE = """\
access(all) contract {{ name }} {

    access(all) event ValueUpdated(key: String, value: String)
    access(all) event ValueRemoved(key: String)

    access(self) let entries: {String: String}
    access(all) var updateCount: UInt64

    access(all) fun setValue(key: String, value: String) {
        pre {
            key.length > 0: "Key cannot be empty"
        }
        self.entries[key] = value
        self.updateCount = self.updateCount + 1
        emit ValueUpdated(key: key, value: value)
    }

    access(all) fun removeValue(key: String) {
        let removed = self.entries.remove(key: key) ?? panic("Key does not exist")
        emit ValueRemoved(key: key)
    }

    access(all) view fun getValue(key: String): String? {
        return self.entries[key]
    }

    access(all) view fun getKeys(): [String] {
        return self.entries.keys
    }

    init() {
        self.entries = {}
        self.updateCount = 0
    }
}
"""

GENERIC_TEMPLATE = """\
access(all) contract {{ name }} {

    access(all) event MessageChanged(message: String)

    access(all) var message: String
    access(all) let createdAt: UFix64

    access(all) fun setMessage(newMessage: String) {
        pre {
            newMessage.length > 0: "Message cannot be empty"
        }
        self.message = newMessage
        emit MessageChanged(message: newMessage)
    }

    access(all) view fun getMessage(): String {
        return self.message
    }

    init() {
        self.message = "Hello from {{ name }}"
        self.createdAt = getCurrentBlock().timestamp
    }
}
"""

# Plain text, not a Jinja template: this is the last resort when rendering fails
EMERGENCY_CONTRACT = """\
// This contract was generated using a fallback template (emergency)
// It covers the essentials of its contract type with concrete values only
// Review and customize it before deploying

access(all) contract EmergencyFallback {

    access(all) event ContractInitialized()

    access(all) var initialized: Bool

    access(all) fun initialize() {
        pre {
            !self.initialized: "Contract already initialized"
        }
        self.initialized = true
        emit ContractInitialized()
    }

    access(all) view fun isInitialized(): Bool {
        return self.initialized
    }

    init() {
        self.initialized = false
    }
}
"""

TEMPLATES: dict[ContractCategory, FallbackTemplate] = {
    ContractCategory.NFT: FallbackTemplate(
        "basic-nft", ContractCategory.NFT, "FallbackNFT", NFT_TEMPLATE
    ),
    ContractCategory.FUNGIBLE_TOKEN: FallbackTemplate(
        "basic-fungible-token", ContractCategory.FUNGIBLE_TOKEN, "FallbackToken",
        FUNGIBLE_TOKEN_TEMPLATE,
    ),
    ContractCategory.MARKETPLACE: FallbackTemplate(
        "basic-marketplace", ContractCategory.MARKETPLACE, "FallbackMarketplace",
        MARKETPLACE_TEMPLATE,
    ),
    ContractCategory.DAO: FallbackTemplate(
        "basic-dao", ContractCategory.DAO, "FallbackDAO", DAO_TEMPLATE
    ),
    ContractCategory.DEFI: FallbackTemplate(
        "basic-staking", ContractCategory.DEFI, "FallbackStaking", DEFI_TEMPLATE
    ),
    ContractCategory.UTILITY: FallbackTemplate(
        "basic-registry", ContractCategory.UTILITY, "FallbackRegistry", UTILITY_TEMPLATE
    ),
    ContractCategory.GENERIC: FallbackTemplate(
        "basic-contract", ContractCategory.GENERIC, "MyContract", GENERIC_TEMPLATE
    ),
}


def template_for(category: ContractCategory) -> FallbackTemplate:
    return TEMPLATES.get(category, TEMPLATES[ContractCategory.GENERIC])
